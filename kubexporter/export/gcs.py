"""
Google Cloud Storage Upload

Uses application default credentials.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import List

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import DefaultCredentialsError
from google.cloud import storage

from kubexporter.common.logger import get_logger
from kubexporter.core.errors import UploadError

logger = get_logger(__name__)


class GCSUploader:
    """Archive upload to a GCS bucket"""

    def __init__(self, cfg, client=None):
        self.cfg = cfg
        try:
            self.client = client or storage.Client()
        except DefaultCredentialsError as e:
            raise UploadError(f"Cannot create GCS client: {e}") from e

    def upload(self, archive: str) -> str:
        name = Path(archive).name
        try:
            blob = self.client.bucket(self.cfg.bucket).blob(name)
            blob.upload_from_filename(archive, content_type='application/x-gtar')
        except GoogleAPIError as e:
            raise UploadError(f"Upload of {name} to gs://{self.cfg.bucket} failed: {e}") from e
        logger.debug(f"Uploaded {archive} to gs://{self.cfg.bucket}/{name}")
        return name

    def prune(self, prefix: str, older_than: datetime) -> List[str]:
        """Delete blobs with prefix created before older_than, returns 'gcs:<name>' entries"""
        if older_than.tzinfo is None:
            older_than = older_than.astimezone(timezone.utc)
        deleted = []
        try:
            for blob in self.client.list_blobs(self.cfg.bucket, prefix=prefix):
                if blob.time_created and blob.time_created < older_than:
                    blob.delete(if_generation_match=blob.generation)
                    deleted.append(f"gcs:{blob.name}")
        except GoogleAPIError as e:
            raise UploadError(f"Pruning gs://{self.cfg.bucket}/{prefix} failed: {e}") from e
        return deleted
