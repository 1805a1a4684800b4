import shutil
import tempfile
from pathlib import Path
from thankcast.config import TEMP_DIR

class LocalWorkspace:
    """
    Context manager for a job-scoped temporary workspace.
    The directory is removed on exit whether or not the body raised.
    """
    def __init__(self, prefix: str = "workspace_", base_dir=None):
        self.prefix = prefix
        self.base_dir = Path(base_dir) if base_dir else TEMP_DIR
        self.path: Path = None

    def __enter__(self):
        self.base_dir.mkdir(parents=True, exist_ok=True)
        tmp_path = tempfile.mkdtemp(prefix=self.prefix, dir=str(self.base_dir))
        self.path = Path(tmp_path)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.path and self.path.exists():
            shutil.rmtree(self.path, ignore_errors=True)

    def get_path(self, *parts: str) -> str:
        """Returns a string path for tools that don't support Path objects yet"""
        return str(self.path.joinpath(*parts))

    def write_bytes(self, name: str, data: bytes) -> str:
        target = self.path / name
        target.write_bytes(data)
        return str(target)
