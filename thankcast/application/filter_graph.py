import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from thankcast.config import CANVAS_WIDTH, CANVAS_HEIGHT
from thankcast.domain.entities.compositing_job import CompositingJob, Sticker, TextPosition
from thankcast.application.filter_presets import (
    AI_FRAME_SHAPE,
    escape_drawtext,
    escape_filter_path,
    ffmpeg_color,
    filter_command,
    frame_border_command,
    text_y_expression,
)

logger = logging.getLogger(__name__)

# Caption layout: 80px side padding on a 1080 canvas, ~0.6 glyph width per
# font pixel, at most a quarter of the height for the caption block.
TEXT_MAX_WIDTH = 920
TEXT_BASE_FONT = 72
TEXT_MIN_FONT = 48
TEXT_CHAR_RATIO = 0.6
TEXT_MAX_LINES = 480 // 90
TEXT_FILE_NAME = "overlay_text.txt"

STICKER_SIZE = 240
STICKER_MIN_SCALE = 0.1
STICKER_MAX_SCALE = 3.0

OUTPUT_CODEC_ARGS = [
    "-c:v", "libx264", "-preset", "veryfast", "-crf", "25", "-threads", "0",
    "-c:a", "aac", "-movflags", "+faststart",
]


@dataclass
class StickerInput:
    """A sticker plus the local PNG to overlay, or None to draw the glyph instead."""
    sticker: Sticker
    png_path: Optional[str] = None


@dataclass
class FilterGraph:
    inputs: list[str]
    parts: list[str]
    stages: list[str]
    output_label: str
    text_files: dict[str, str] = field(default_factory=dict)

    @property
    def filter_complex(self) -> str:
        return ";".join(self.parts)

    def write_text_files(self):
        for path, content in self.text_files.items():
            Path(path).write_text(content, encoding="utf-8")

    def ffmpeg_args(self, output_path) -> list[str]:
        args = []
        for path in self.inputs:
            args += ["-i", str(path)]
        args += [
            "-filter_complex", self.filter_complex,
            "-map", f"[{self.output_label}]",
            "-map", "0:a?",
            *OUTPUT_CODEC_ARGS,
            str(output_path),
        ]
        return args


def wrap_words(text: str, chars_per_line: int) -> list[str]:
    lines = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if len(candidate) <= chars_per_line:
            current = candidate
        else:
            if current:
                lines.append(current)
            current = word
    if current:
        lines.append(current)
    return lines


def wrap_caption(text: str, max_width: int = TEXT_MAX_WIDTH):
    """
    Word-wraps a caption for the canvas and picks its font size.

    Returns (lines, font_size). Long captions shrink from 72px toward 48px,
    and are re-wrapped when the font shrinks by more than a fifth.
    """
    text = (text or "").strip()
    lines = wrap_words(text, int(max_width // (TEXT_BASE_FONT * TEXT_CHAR_RATIO)))
    font_size = TEXT_BASE_FONT

    if len(lines) > TEXT_MAX_LINES:
        font_size = max(TEXT_MIN_FONT, int(TEXT_BASE_FONT * TEXT_MAX_LINES / len(lines)))
        if font_size < TEXT_BASE_FONT * 0.8:
            lines = wrap_words(text, int(max_width // (font_size * TEXT_CHAR_RATIO)))

    return lines, font_size


def sticker_placement(sticker: Sticker, width: int, height: int):
    """Pixel size and top-left corner of a sticker centered on its percent point."""
    scale = max(STICKER_MIN_SCALE, min(STICKER_MAX_SCALE, sticker.scale or 1))
    size = round(STICKER_SIZE * scale)
    half = round(size / 2)
    x = round(sticker.x_percent / 100 * width) - half
    y = round(sticker.y_percent / 100 * height) - half
    # keep at least half the sticker on screen
    x = max(-half, min(width - half, x))
    y = max(-half, min(height - half, y))
    return size, x, y


class FilterGraphBuilder:
    """
    Builds the single filter_complex used by the worker.

    Stage order is fixed: scale -> filter -> frame -> text -> stickers.
    Each stage is appended only when the job asks for it; the `stages`
    list on the result records what was actually emitted.
    """

    def __init__(self, width: int = CANVAS_WIDTH, height: int = CANVAS_HEIGHT):
        self.width = width
        self.height = height

    def build(
        self,
        job: CompositingJob,
        video_path,
        frame_path=None,
        stickers: Optional[list[StickerInput]] = None,
        text_dir=None,
    ) -> FilterGraph:
        w, h = self.width, self.height
        inputs = [str(video_path)]
        parts = []
        stages = []
        text_files = {}

        parts.append(
            f"[0:v]scale={w}:{h}:force_original_aspect_ratio=decrease,"
            f"pad={w}:{h}:(ow-iw)/2:(oh-ih)/2[scaled]"
        )
        stages.append("scale")
        current = "scaled"

        chain = filter_command(job.filter_id)
        if chain:
            parts.append(f"[{current}]{chain}[filtered]")
            stages.append("filter")
            current = "filtered"
        elif job.filter_id and job.filter_id != "none":
            logger.warning(f"⚠️ Unknown filter '{job.filter_id}', skipping")

        if frame_path:
            inputs.append(str(frame_path))
            if job.frame_shape == AI_FRAME_SHAPE:
                # generated frames have an opaque black center
                parts.append(f"[1:v]colorkey=black:0.1:0.1,scale={w}:{h}[frame]")
            else:
                parts.append(f"[1:v]scale={w}:{h}[frame]")
            parts.append(f"[{current}][frame]overlay=0:0[framed]")
            stages.append("frame")
            current = "framed"
        else:
            border = frame_border_command(job.frame_shape, job.primary_color, job.border_width)
            if border:
                parts.append(f"[{current}]{border}[framed]")
                stages.append("frame")
                current = "framed"
            elif job.frame_shape:
                logger.warning(f"⚠️ Frame shape '{job.frame_shape}' has no drawn fallback, skipping")

        if job.custom_text and job.custom_text.strip():
            lines, font_size = wrap_caption(job.custom_text, max_width=w - 160)
            text_path = str(Path(text_dir or ".") / TEXT_FILE_NAME)
            text_files[text_path] = "\n".join(lines)
            line_spacing = round(font_size * 1.3) - font_size
            y_expr = text_y_expression(job.custom_text_position or TextPosition.BOTTOM, h)
            parts.append(
                f"[{current}]drawtext=textfile='{escape_filter_path(text_path)}'"
                f":fontsize={font_size}:fontcolor={ffmpeg_color(job.custom_text_color)}"
                f":x=(w-text_w)/2:y={y_expr}"
                f":box=1:boxcolor=black@0.5:boxborderw=20:line_spacing={line_spacing}[texted]"
            )
            stages.append("text")
            current = "texted"

        for i, item in enumerate(stickers or []):
            size, x, y = sticker_placement(item.sticker, w, h)
            if item.png_path:
                idx = len(inputs)
                inputs.append(str(item.png_path))
                parts.append(f"[{idx}:v]scale={size}:{size}[sticker{i}]")
                parts.append(f"[{current}][sticker{i}]overlay={x}:{y}[stickered{i}]")
            else:
                # glyph fallback keeps the PNG's box size and anchor
                parts.append(
                    f"[{current}]drawtext=text='{escape_drawtext(item.sticker.symbol)}'"
                    f":fontsize={size}:x={x}:y={y}[stickered{i}]"
                )
            current = f"stickered{i}"
        if stickers:
            stages.append("stickers")

        return FilterGraph(
            inputs=inputs,
            parts=parts,
            stages=stages,
            output_label=current,
            text_files=text_files,
        )
