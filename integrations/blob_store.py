import logging
import os
import time
import uuid

from utils.constants import UPLOAD_DIR, UPLOAD_URL_PREFIX
from utils.errors import StoreError

logger = logging.getLogger(__name__)


class LocalBlobStore:
    """Stores uploaded media on local disk; files are served by the ``/uploads`` mount."""

    def __init__(self, directory: str = UPLOAD_DIR, url_prefix: str = UPLOAD_URL_PREFIX) -> None:
        self.directory = directory
        self.url_prefix = url_prefix.rstrip("/")
        os.makedirs(self.directory, exist_ok=True)

    def _blob_name(self, original_name: str) -> str:
        # Random part keeps uploads within the same millisecond apart
        safe_name = os.path.basename(original_name or "").replace(" ", "_") or "upload"
        return f"{int(time.time() * 1000)}-{uuid.uuid4().hex}-{safe_name}"

    def save(self, original_name: str, data: bytes) -> str:
        """Write ``data`` and return the path the blob can be fetched from."""
        name = self._blob_name(original_name)
        try:
            with open(os.path.join(self.directory, name), "wb") as buffer:
                buffer.write(data)
        except OSError as e:
            logger.error(f"Error saving upload {original_name}: {e}")
            raise StoreError() from e

        logger.info(f"Stored upload {name} ({len(data)} bytes)")
        return f"{self.url_prefix}/{name}"


blob_store = LocalBlobStore()


def get_blob_store() -> LocalBlobStore:
    return blob_store
