"""
Local filesystem blob store.
Writes go to a temporary file in the same directory and are renamed into
place, so a reader sees either the previous or the new content, never a mix.
"""
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from ..errors import InvalidInput
from ..ids import is_valid_id
from .provider import BlobStore, blob_key


class LocalBlobStore(BlobStore):
    def __init__(self, base_dir: str = "var/storage"):
        self.base_dir = Path(base_dir)
        (self.base_dir / "appointments").mkdir(parents=True, exist_ok=True)

    def _get_path(self, appointment_id: int) -> Path:
        return self.base_dir / blob_key(appointment_id)

    def put(self, appointment_id: int, data: bytes) -> None:
        if not is_valid_id(appointment_id):
            raise InvalidInput("Invalid appointment ID")
        path = self._get_path(appointment_id)
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=".upload-")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp, path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def get(self, appointment_id: Any) -> Optional[bytes]:
        if not is_valid_id(appointment_id):
            return None
        path = self._get_path(appointment_id)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None

    def exists(self, appointment_id: Any) -> bool:
        return is_valid_id(appointment_id) and self._get_path(appointment_id).exists()

    def delete(self, appointment_id: Any) -> None:
        if not is_valid_id(appointment_id):
            return
        self._get_path(appointment_id).unlink(missing_ok=True)
