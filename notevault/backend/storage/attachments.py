"""
Attachment Store.

Blob storage for note attachments behind a three-call contract:
save(key, data), read(key), delete(key). Keys are generated by the
attachment service as "<note_id>/<random hex>".

The shipped LocalAttachmentStore writes below notes.attachments.storage_path
and runs every file operation on the shared I/O thread pool.
"""

from pathlib import Path
from typing import Protocol

from notevault.backend.core.concurrency import run_blocking
from notevault.backend.core.exceptions import NotFoundError
from notevault.backend.core.logging import get_logger

logger = get_logger(__name__)


class AttachmentStore(Protocol):
    """Blob storage used by the attachment service."""

    async def save(self, key: str, data: bytes) -> None: ...

    async def read(self, key: str) -> bytes: ...

    async def delete(self, key: str) -> None: ...


class LocalAttachmentStore:
    """Attachment store backed by a local directory."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise ValueError(f"Storage key escapes the store root: {key}")
        return path

    def _write(self, key: str, data: bytes) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    def _read(self, key: str) -> bytes:
        path = self._path(key)
        if not path.exists():
            raise NotFoundError("Attachment not found")
        return path.read_bytes()

    def _delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    async def save(self, key: str, data: bytes) -> None:
        await run_blocking(self._write, key, data)
        logger.debug("Attachment stored", extra={"key": key, "byte_size": len(data)})

    async def read(self, key: str) -> bytes:
        return await run_blocking(self._read, key)

    async def delete(self, key: str) -> None:
        """Remove a blob. Deleting a missing key is a no-op."""
        await run_blocking(self._delete, key)
        logger.debug("Attachment deleted", extra={"key": key})


_store: AttachmentStore | None = None


def get_attachment_store() -> AttachmentStore:
    """Get the configured attachment store, creating it on first use."""
    global _store
    if _store is None:
        from notevault.backend.core.config import find_project_root, get_app_config

        configured = Path(get_app_config().notes.attachments.storage_path)
        root = configured if configured.is_absolute() else find_project_root() / configured
        _store = LocalAttachmentStore(root)
    return _store


async def purge_blobs(store: AttachmentStore, keys: list[str]) -> int:
    """
    Delete blobs whose rows are already gone.

    Failures are logged and skipped: the rows are committed, so a leftover
    blob is garbage, not lost data.

    Returns:
        Number of blobs deleted
    """
    purged = 0
    for key in keys:
        try:
            await store.delete(key)
            purged += 1
        except OSError as exc:
            logger.warning("Attachment blob purge failed", extra={"key": key, "error": str(exc)})
    return purged
