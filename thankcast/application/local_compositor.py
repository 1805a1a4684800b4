import logging
import shutil
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from thankcast.config import COMPOSITED_CACHE_DIR, CANVAS_WIDTH, CANVAS_HEIGHT
from thankcast.domain.entities.compositing_job import CompositingJob, Sticker, TextPosition
from thankcast.application.filter_presets import (
    escape_drawtext,
    ffmpeg_color,
    filter_command,
    text_y_expression,
)
from thankcast.infrastructure.capability_prober import CapabilityProvider
from thankcast.infrastructure.ffmpeg_engine import FFmpegEngine

logger = logging.getLogger(__name__)

STICKER_BASE_SIZE = 40
TEXT_FONT_SIZE = 48
MIN_BORDER_PX = 4
MAX_BORDER_PX = 24
STEP_CODEC_ARGS = ["-c:v", "libx264", "-preset", "fast", "-crf", "23"]


@dataclass
class CompositeOptions:
    frame_png_path: Optional[str] = None
    frame_shape: Optional[str] = None
    primary_color: Optional[str] = None
    border_width: int = 20
    custom_text: Optional[str] = None
    custom_text_position: TextPosition = TextPosition.BOTTOM
    custom_text_color: str = "#FFFFFF"
    stickers: list[Sticker] = field(default_factory=list)
    filter_id: Optional[str] = None
    fix_rotation: bool = True

    @classmethod
    def from_job(cls, job: CompositingJob, frame_png_path: Optional[str] = None) -> "CompositeOptions":
        """Decoration of a job; frame_png_path must already be a local file."""
        return cls(
            frame_png_path=frame_png_path,
            frame_shape=job.frame_shape,
            # jobs always carry a default color; only a chosen frame draws a border
            primary_color=job.primary_color if job.frame_shape else None,
            border_width=job.border_width,
            custom_text=job.custom_text,
            custom_text_position=job.custom_text_position,
            custom_text_color=job.custom_text_color,
            stickers=list(job.stickers),
            filter_id=job.filter_id,
        )


@dataclass
class CompositeResult:
    output_path: str
    degraded: bool = False
    failed_steps: list[str] = field(default_factory=list)


class LocalCompositor:
    """
    Best-effort compositing on the submitting machine.

    Runs one ffmpeg invocation per step:
    rotation -> filter -> stickers -> frame -> text.
    A failed step is logged and skipped; its input carries forward.
    """

    def __init__(
        self,
        engine: FFmpegEngine,
        prober: CapabilityProvider,
        output_dir=COMPOSITED_CACHE_DIR,
    ):
        self.engine = engine
        self.prober = prober
        self.output_dir = Path(output_dir)

    def _output_path(self, step: str) -> str:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        return str(self.output_dir / f"composited_{step}_{uuid.uuid4().hex}.mp4")

    def _run_vf(self, step, input_path, vf, extra_args=(), audio="copy"):
        output_path = self._output_path(step)
        self.engine.transcode([
            "-i", input_path,
            "-vf", vf,
            *extra_args,
            *STEP_CODEC_ARGS,
            "-c:a", audio,
            output_path,
        ])
        return output_path

    def normalize_rotation(self, input_path):
        return self._run_vf(
            "rotation", input_path,
            "scale=trunc(iw/2)*2:trunc(ih/2)*2",
            extra_args=["-metadata:s:v:0", "rotate=0"],
            audio="aac",
        )

    def apply_filter(self, input_path, filter_id):
        chain = filter_command(filter_id)
        if not chain:
            return None
        return self._run_vf("filter", input_path, chain)

    def add_stickers(self, input_path, stickers: list[Sticker]):
        if not stickers:
            return None
        width, height = self.engine.get_video_size(input_path, default=(CANVAS_WIDTH, CANVAS_HEIGHT))
        filters = []
        for sticker in stickers:
            x = round(sticker.x_percent / 100 * width)
            y = round(sticker.y_percent / 100 * height)
            size = round(STICKER_BASE_SIZE * (sticker.scale or 1))
            filters.append(
                f"drawtext=text='{escape_drawtext(sticker.symbol)}':fontsize={size}:x={x}:y={y}:fontcolor=white"
            )
        return self._run_vf("stickers", input_path, ",".join(filters))

    def add_frame(self, input_path, options: CompositeOptions):
        if options.frame_png_path:
            output_path = self._output_path("frame")
            self.engine.transcode([
                "-i", input_path,
                "-i", options.frame_png_path,
                "-filter_complex", "[1:v][0:v]scale2ref[frame][base];[base][frame]overlay=0:0",
                *STEP_CODEC_ARGS,
                "-c:a", "copy",
                output_path,
            ])
            return output_path
        if options.primary_color:
            border = max(MIN_BORDER_PX, min(MAX_BORDER_PX, int(options.border_width or 0) * 2))
            color = ffmpeg_color(options.primary_color)
            return self._run_vf(
                "frame", input_path,
                f"pad=iw+{border * 2}:ih+{border * 2}:{border}:{border}:{color}",
            )
        return None

    def add_text(self, input_path, options: CompositeOptions):
        text = (options.custom_text or "").strip()
        if not text:
            return None
        _, height = self.engine.get_video_size(input_path, default=(CANVAS_WIDTH, CANVAS_HEIGHT))
        y_expr = text_y_expression(options.custom_text_position, height)
        vf = (
            f"drawtext=text='{escape_drawtext(text)}':fontsize={TEXT_FONT_SIZE}"
            f":fontcolor={ffmpeg_color(options.custom_text_color)}:x=(w-text_w)/2:y={y_expr}"
            f":box=1:boxcolor=black@0.5:boxborderw=10:shadowcolor=black:shadowx=2:shadowy=2"
        )
        return self._run_vf("text", input_path, vf)

    def compose(
        self,
        input_path,
        options: CompositeOptions,
        on_progress: Optional[Callable[[str], None]] = None,
    ) -> CompositeResult:
        input_path = str(input_path)
        if not self.prober.probe():
            logger.info("⚠️ Transcoding engine unavailable, returning the original video")
            return CompositeResult(output_path=input_path, degraded=True)

        steps = []
        if options.fix_rotation:
            steps.append(("rotation", "Normalizing video orientation...", self.normalize_rotation))
        steps += [
            ("filter", "Applying filter...", lambda p: self.apply_filter(p, options.filter_id)),
            ("stickers", "Adding stickers...", lambda p: self.add_stickers(p, options.stickers)),
            ("frame", "Adding frame...", lambda p: self.add_frame(p, options)),
            ("text", "Adding text overlay...", lambda p: self.add_text(p, options)),
        ]

        current = input_path
        failed_steps = []
        for index, (name, message, step) in enumerate(steps):
            if not self.prober.probe():
                logger.info(f"⚠️ Transcoding engine lost before step '{name}', returning the original video")
                failed_steps += [n for n, _, _ in steps[index:]]
                return CompositeResult(output_path=input_path, degraded=True, failed_steps=failed_steps)
            try:
                output = step(current)
            except Exception as e:
                logger.error(f"❌ Compositing step '{name}' failed, keeping previous output: {e}")
                failed_steps.append(name)
                continue
            if output:
                if on_progress:
                    on_progress(message)
                logger.info(f"✅ Step '{name}' done: {output}")
                current = output

        if on_progress:
            on_progress("Complete!")
        return CompositeResult(output_path=current, degraded=bool(failed_steps), failed_steps=failed_steps)

    def cleanup(self):
        """Removes every file this compositor has produced."""
        if self.output_dir.exists():
            shutil.rmtree(self.output_dir, ignore_errors=True)
            logger.info(f"🧹 Removed compositor cache {self.output_dir}")
