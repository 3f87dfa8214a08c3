from typing import Any, Optional


def blob_key(appointment_id: int) -> str:
    return f"appointments/{appointment_id}.pdf"


class BlobStore:
    """PDF bytes keyed by appointment id."""

    def put(self, appointment_id: int, data: bytes) -> None:
        raise NotImplementedError

    def get(self, appointment_id: Any) -> Optional[bytes]:
        raise NotImplementedError

    def exists(self, appointment_id: Any) -> bool:
        return self.get(appointment_id) is not None

    def delete(self, appointment_id: Any) -> None:
        raise NotImplementedError
