import pytest

from thankcast.application.path_resolver import frame_asset_locations, resolve_storage_key


@pytest.mark.parametrize(
    "reference, expected",
    [
        ("https://abc.supabase.co/storage/v1/object/public/videos/a/b.mp4", "a/b.mp4"),
        ("https://abc.supabase.co/storage/v1/object/sign/videos/a/b.mp4?token=xyz", "a/b.mp4"),
        ("https://abc.supabase.co/storage/v1/object/authenticated/videos/a/b.mp4", "a/b.mp4"),
        ("videos/a/b.mp4", "a/b.mp4"),
        ("a/b.mp4", "a/b.mp4"),
        ("a%20b.mp4", "a b.mp4"),
    ],
)
def test_resolves_references_to_bucket_keys(reference, expected):
    assert resolve_storage_key(reference, "videos") == expected


def test_decodes_exactly_once():
    assert resolve_storage_key("a%2520b.mp4", "videos") == "a%20b.mp4"


def test_storage_url_without_access_segment_uses_bucket_marker():
    url = "http://localhost:54321/storage/v1/object/videos/parent/clip.mp4"
    assert resolve_storage_key(url, "videos") == "parent/clip.mp4"


def test_only_the_leading_bucket_segment_is_stripped():
    assert resolve_storage_key("videos/videos/clip.mp4", "videos") == "videos/clip.mp4"


def test_other_bucket_prefix_is_left_alone():
    assert resolve_storage_key("ai-frames/x.png", "videos") == "ai-frames/x.png"


def test_preset_frames_only_live_in_the_frame_bucket():
    assert frame_asset_locations("preset-frames/hearts.png", "ai-frames", "videos") == [
        ("ai-frames", "preset-frames/hearts.png"),
    ]


def test_generated_frames_fall_back_to_the_video_bucket():
    assert frame_asset_locations("ai-frames/parent-1/frame.png", "ai-frames", "videos") == [
        ("ai-frames", "parent-1/frame.png"),
        ("videos", "ai-frames/parent-1/frame.png"),
    ]
