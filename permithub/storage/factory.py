from ..config import Settings
from .provider import BlobStore


def build_blob_store(settings: Settings) -> BlobStore:
    """
    Pick the PDF store from configuration.
    "blob" uses Azure Blob Storage, "memory" keeps bytes in-process,
    anything else falls back to the local filesystem.
    """
    provider = (settings.storage_provider or "local").lower()
    if provider == "blob":
        from .blob_provider import AzureBlobStore

        return AzureBlobStore(settings.azure_blob_connection, settings.azure_blob_container)
    if provider == "memory":
        from .memory_provider import MemoryBlobStore

        return MemoryBlobStore()
    from .local_provider import LocalBlobStore

    return LocalBlobStore(settings.local_storage_dir)
