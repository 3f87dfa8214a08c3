"""
In-process blob store. Contents are lost on restart; meant for tests and
throwaway environments.
"""
import threading
from typing import Any, Dict, Optional

from ..errors import InvalidInput
from ..ids import is_valid_id
from .provider import BlobStore


class MemoryBlobStore(BlobStore):
    def __init__(self) -> None:
        self._blobs: Dict[int, bytes] = {}
        self._lock = threading.Lock()

    def put(self, appointment_id: int, data: bytes) -> None:
        if not is_valid_id(appointment_id):
            raise InvalidInput("Invalid appointment ID")
        with self._lock:
            self._blobs[appointment_id] = bytes(data)

    def get(self, appointment_id: Any) -> Optional[bytes]:
        if not is_valid_id(appointment_id):
            return None
        with self._lock:
            return self._blobs.get(appointment_id)

    def delete(self, appointment_id: Any) -> None:
        with self._lock:
            self._blobs.pop(appointment_id, None)
