import pytest

from thankcast.application.local_compositor import CompositeOptions, LocalCompositor
from thankcast.domain.entities.compositing_job import CompositingJob, Sticker
from thankcast.infrastructure.capability_prober import CapabilityProvider, StaticCapabilityProvider

from conftest import FakeEngine


class FlakyProvider(CapabilityProvider):
    """Available for the first `available_for` probes, then gone."""

    def __init__(self, available_for):
        self.remaining = available_for

    def probe(self):
        self.remaining -= 1
        return self.remaining >= 0


@pytest.fixture
def source(tmp_path):
    path = tmp_path / "capture.mp4"
    path.write_bytes(b"raw")
    return str(path)


def _compositor(tmp_path, engine, available=True):
    return LocalCompositor(engine, StaticCapabilityProvider(available), output_dir=tmp_path / "cache")


def _step_of(call):
    """Which step produced a call, from its output file name."""
    return call[-1].rsplit("/", 1)[-1].split("_")[1]


def test_unavailable_engine_returns_input_untouched(tmp_path, source):
    engine = FakeEngine()
    result = _compositor(tmp_path, engine, available=False).compose(source, CompositeOptions(custom_text="Hi"))

    assert result.output_path == source
    assert result.degraded
    assert engine.calls == []


def test_runs_steps_in_order_with_unique_outputs(tmp_path, source):
    engine = FakeEngine()
    options = CompositeOptions(
        filter_id="sepia",
        stickers=[Sticker("🎉", 25, 75, scale=2)],
        primary_color="#FF69B4",
        border_width=10,
        custom_text="Thanks!",
    )
    progress = []

    result = _compositor(tmp_path, engine).compose(source, options, on_progress=progress.append)

    assert [_step_of(c) for c in engine.calls] == ["rotation", "filter", "stickers", "frame", "text"]
    outputs = [c[-1] for c in engine.calls]
    assert len(set(outputs)) == 5
    # each step reads the previous step's output
    for previous, call in zip(outputs, engine.calls[1:]):
        assert call[call.index("-i") + 1] == previous
    assert result.output_path == outputs[-1]
    assert not result.degraded
    assert progress[-1] == "Complete!"


def test_rotation_can_be_skipped(tmp_path, source):
    engine = FakeEngine()
    _compositor(tmp_path, engine).compose(source, CompositeOptions(filter_id="bw", fix_rotation=False))
    assert [_step_of(c) for c in engine.calls] == ["filter"]


def test_sticker_and_text_geometry(tmp_path, source):
    engine = FakeEngine(size=(720, 1280))
    options = CompositeOptions(stickers=[Sticker("⭐", 50, 25, scale=1.5)], custom_text="Yay", fix_rotation=False)

    _compositor(tmp_path, engine).compose(source, options)

    sticker_vf = engine.calls[0][engine.calls[0].index("-vf") + 1]
    assert "fontsize=60:x=360:y=320" in sticker_vf
    text_vf = engine.calls[1][engine.calls[1].index("-vf") + 1]
    assert "max(960-text_h\\,h-text_h-102)" in text_vf


def test_border_width_is_clamped(tmp_path, source):
    engine = FakeEngine()
    _compositor(tmp_path, engine).compose(
        source, CompositeOptions(primary_color="#000000", border_width=50, fix_rotation=False)
    )
    vf = engine.calls[0][engine.calls[0].index("-vf") + 1]
    assert vf == "pad=iw+48:ih+48:24:24:0x000000"


def test_png_frame_is_scaled_to_the_video(tmp_path, source):
    engine = FakeEngine()
    _compositor(tmp_path, engine).compose(source, CompositeOptions(frame_png_path="/frames/hearts.png", fix_rotation=False))
    assert "scale2ref" in " ".join(engine.calls[0])
    assert "/frames/hearts.png" in engine.calls[0]


def test_failed_step_carries_previous_output_forward(tmp_path, source):
    engine = FakeEngine(fail_when="drawtext")
    options = CompositeOptions(filter_id="warm", custom_text="Thank you", fix_rotation=False)

    result = _compositor(tmp_path, engine).compose(source, options)

    assert result.degraded
    assert result.failed_steps == ["text"]
    assert _step_of([result.output_path]) == "filter"


def test_engine_disappearing_mid_pipeline_returns_input(tmp_path, source):
    engine = FakeEngine()
    compositor = LocalCompositor(engine, FlakyProvider(available_for=2), output_dir=tmp_path / "cache")

    result = compositor.compose(source, CompositeOptions(filter_id="warm"))

    # first probe gates compose, second lets rotation run
    assert [_step_of(c) for c in engine.calls] == ["rotation"]
    assert result.output_path == source
    assert result.degraded
    assert result.failed_steps == ["filter", "stickers", "frame", "text"]


def test_unexpected_step_error_does_not_abort_compose(tmp_path, source):
    class BrokenDiskEngine(FakeEngine):
        def transcode(self, args):
            if "_filter_" in str(args[-1]):
                raise OSError("No space left on device")
            return super().transcode(args)

    engine = BrokenDiskEngine()
    result = _compositor(tmp_path, engine).compose(source, CompositeOptions(filter_id="warm", custom_text="Hi"))

    assert result.failed_steps == ["filter"]
    assert _step_of([result.output_path]) == "text"


def test_options_from_job_only_frame_jobs_draw_a_border():
    plain = CompositeOptions.from_job(CompositingJob(video_path="a.mp4"))
    framed = CompositeOptions.from_job(CompositingJob(video_path="a.mp4", frame_shape="bold-classic"))

    assert plain.primary_color is None
    assert framed.primary_color == "#06B6D4"


def test_cleanup_removes_cache(tmp_path, source):
    compositor = _compositor(tmp_path, FakeEngine())
    compositor.compose(source, CompositeOptions())
    assert (tmp_path / "cache").exists()

    compositor.cleanup()
    assert not (tmp_path / "cache").exists()
