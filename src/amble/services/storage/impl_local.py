import os
from pathlib import Path

from amble.services.storage.interfaces import BlobStore


class LocalBlobStore(BlobStore):
    """Stores blobs as files under a root directory; keys map to relative paths."""

    def __init__(self, root_dir):
        self.root = Path(root_dir).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root not in path.parents:
            raise KeyError(f"Invalid blob key: {key}")
        return path

    def put(self, key: str, data: bytes) -> None:
        path = self._path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_name(path.name + '.part')
        with open(tmp_path, 'wb') as f:
            f.write(data)
        os.replace(tmp_path, path)

    def get(self, key: str) -> bytes:
        path = self._path_for(key)
        try:
            with open(path, 'rb') as f:
                return f.read()
        except FileNotFoundError:
            raise KeyError(key) from None

    def delete(self, key: str) -> bool:
        path = self._path_for(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
