"""
RegVerify — Blob Store
Local-disk object storage addressed by (container, path). The verification
pipeline only looks up metadata; put() stores proof documents for the
applicant flow and tests.
"""
from datetime import datetime, timezone
from pathlib import Path

from regverify.config import BLOB_DIR


class BlobNotFound(Exception):
    """The (container, path) pair does not name a stored object."""

    def __init__(self, container: str, path: str):
        super().__init__(f"No such object: {container}/{path}")
        self.container = container
        self.path = path


class BlobStore:
    def __init__(self, root: Path = BLOB_DIR):
        self.root = Path(root)

    def _locate(self, container: str, path: str) -> Path:
        if not container or container in (".", "..") or "/" in container or "\\" in container:
            raise ValueError(f"Invalid container name: {container!r}")
        base = (self.root / container).resolve()
        fp = (base / path).resolve()
        # Path traversal protection
        if not fp.is_relative_to(base):
            raise ValueError(f"Object path escapes container: {path!r}")
        return fp

    def get_metadata(self, container: str, path: str) -> dict:
        fp = self._locate(container, path)
        if not path or not fp.is_file():
            raise BlobNotFound(container, path)
        st = fp.stat()
        return {
            "bucket": container,
            "name": path,
            "size": str(st.st_size),
            "updated": datetime.fromtimestamp(st.st_mtime, timezone.utc).isoformat(),
        }

    def put(self, container: str, path: str, content: bytes) -> dict:
        fp = self._locate(container, path)
        fp.parent.mkdir(parents=True, exist_ok=True)
        fp.write_bytes(content)
        return self.get_metadata(container, path)
