import json
import logging
import subprocess

from thankcast.config import FFMPEG_BIN, FFPROBE_BIN, FFMPEG_LOGLEVEL, CANVAS_WIDTH, CANVAS_HEIGHT
from thankcast.domain.errors import RenderExecutionFailure

logger = logging.getLogger(__name__)


class FFmpegEngine:
    """Thin wrapper over the ffmpeg/ffprobe binaries."""

    def __init__(self, ffmpeg_bin: str = FFMPEG_BIN, ffprobe_bin: str = FFPROBE_BIN, loglevel: str = FFMPEG_LOGLEVEL):
        self.ffmpeg_bin = ffmpeg_bin
        self.ffprobe_bin = ffprobe_bin
        self.loglevel = loglevel

    def run_cmd(self, cmd):
        try:
            p = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
        except OSError as e:
            raise RenderExecutionFailure(f"Could not start {cmd[0]}: {e}") from e
        if p.returncode != 0:
            raise RenderExecutionFailure(
                f"Command failed:\n{' '.join(str(c) for c in cmd)}\n\nSTDERR:\n{p.stderr[-4000:]}",
                stderr=p.stderr,
            )
        return p.stdout, p.stderr

    def transcode(self, args):
        """Runs ffmpeg with the given arguments (everything after the binary name)."""
        cmd = [self.ffmpeg_bin, "-y", "-hide_banner", "-loglevel", self.loglevel, *[str(a) for a in args]]
        logger.debug(f"🎬 {' '.join(cmd)}")
        return self.run_cmd(cmd)

    def get_video_size(self, path, default=(CANVAS_WIDTH, CANVAS_HEIGHT)):
        try:
            out, _ = self.run_cmd([
                self.ffprobe_bin, "-v", "error",
                "-select_streams", "v:0",
                "-show_entries", "stream=width,height",
                "-of", "json",
                str(path)
            ])
            s = json.loads(out)["streams"][0]
            return int(s["width"]), int(s["height"])
        except (RenderExecutionFailure, ValueError, KeyError, IndexError) as e:
            logger.warning(f"⚠️ Could not read dimensions of {path}, assuming {default[0]}x{default[1]}: {e}")
            return default
