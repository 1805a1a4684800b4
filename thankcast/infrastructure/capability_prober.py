import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from functools import lru_cache

from thankcast.config import FFMPEG_BIN, FFPROBE_BIN, FFMPEG_ENABLED

logger = logging.getLogger(__name__)


class CapabilityProvider(ABC):
    @abstractmethod
    def probe(self) -> bool:
        """True when the transcoding engine can be used. Must never raise."""


class StaticCapabilityProvider(CapabilityProvider):
    def __init__(self, available: bool):
        self.available = available

    def probe(self) -> bool:
        return self.available


class FFmpegCapabilityProber(CapabilityProvider):
    """
    Detects a usable ffmpeg/ffprobe pair once and remembers the answer,
    whether the first attempt succeeded or failed.
    """

    def __init__(self, ffmpeg_bin: str = FFMPEG_BIN, ffprobe_bin: str = FFPROBE_BIN, timeout: float = 10.0):
        self.ffmpeg_bin = ffmpeg_bin
        self.ffprobe_bin = ffprobe_bin
        self.timeout = timeout
        self._available = None

    def probe(self) -> bool:
        if self._available is None:
            self._available = self._detect()
        return self._available

    def _detect(self) -> bool:
        if shutil.which(self.ffmpeg_bin) is None or shutil.which(self.ffprobe_bin) is None:
            logger.warning("⚠️ ffmpeg/ffprobe not found on PATH, compositing will fall back to the original video")
            return False
        try:
            p = subprocess.run(
                [self.ffmpeg_bin, "-hide_banner", "-version"],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                timeout=self.timeout,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning(f"⚠️ ffmpeg probe failed: {e}")
            return False
        if p.returncode != 0:
            logger.warning(f"⚠️ ffmpeg -version exited with {p.returncode}")
            return False
        logger.info(f"🎬 Transcoding engine available: {p.stdout.splitlines()[0] if p.stdout else self.ffmpeg_bin}")
        return True


@lru_cache(maxsize=1)
def default_prober() -> CapabilityProvider:
    """Process-scoped capability shared by the compositor and the worker."""
    if not FFMPEG_ENABLED:
        return StaticCapabilityProvider(False)
    return FFmpegCapabilityProber()
