from typing import Any, Optional

from azure.core.exceptions import ResourceNotFoundError
from azure.storage.blob import BlobServiceClient

from ..errors import InvalidInput
from ..ids import is_valid_id
from .provider import BlobStore, blob_key


class AzureBlobStore(BlobStore):
    def __init__(self, connection_string: Optional[str], container: Optional[str]) -> None:
        if not connection_string or not container:
            raise RuntimeError("AZURE_BLOB_CONNECTION and AZURE_BLOB_CONTAINER must be set")
        self._service = BlobServiceClient.from_connection_string(connection_string)
        self._container = container

    def _client(self, appointment_id: int):
        return self._service.get_blob_client(self._container, blob_key(appointment_id))

    def put(self, appointment_id: int, data: bytes) -> None:
        if not is_valid_id(appointment_id):
            raise InvalidInput("Invalid appointment ID")
        self._client(appointment_id).upload_blob(data, overwrite=True)

    def get(self, appointment_id: Any) -> Optional[bytes]:
        if not is_valid_id(appointment_id):
            return None
        try:
            return self._client(appointment_id).download_blob().readall()
        except ResourceNotFoundError:
            return None

    def exists(self, appointment_id: Any) -> bool:
        if not is_valid_id(appointment_id):
            return False
        return self._client(appointment_id).exists()

    def delete(self, appointment_id: Any) -> None:
        if not is_valid_id(appointment_id):
            return
        try:
            self._client(appointment_id).delete_blob()
        except ResourceNotFoundError:
            pass
