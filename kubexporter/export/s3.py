"""
S3 Upload

Uploads the archive to an S3 compatible bucket and prunes remote
archives older than the retention window.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from kubexporter.common.logger import get_logger
from kubexporter.core.errors import UploadError

logger = get_logger(__name__)

CONTENT_TYPE = 'application/x-gtar'


def _endpoint_url(endpoint: str, secure: bool) -> Optional[str]:
    if not endpoint:
        return None
    if '://' in endpoint:
        return endpoint
    return f"{'https' if secure else 'http'}://{endpoint}"


def new_client(cfg):
    """Create a boto3 S3 client from an S3Config"""
    kwargs = {
        'endpoint_url': _endpoint_url(cfg.endpoint, cfg.secure),
        'use_ssl': cfg.secure,
        'verify': cfg.secure,
        'config': Config(signature_version='s3v4'),
    }
    if cfg.region:
        kwargs['region_name'] = cfg.region
    if cfg.access_key_id:
        kwargs['aws_access_key_id'] = cfg.access_key_id
        kwargs['aws_secret_access_key'] = cfg.secret_access_key
    if cfg.token:
        kwargs['aws_session_token'] = cfg.token
    return boto3.client('s3', **kwargs)


class S3Uploader:
    """Archive upload to S3"""

    def __init__(self, cfg, client=None):
        self.cfg = cfg
        self.client = client or new_client(cfg)

    def upload(self, archive: str) -> str:
        """Upload the archive under its base name, returns the object key"""
        key = Path(archive).name
        try:
            self.client.upload_file(archive, self.cfg.bucket, key,
                                    ExtraArgs={'ContentType': CONTENT_TYPE})
        except (ClientError, BotoCoreError) as e:
            raise UploadError(f"Upload of {key} to s3://{self.cfg.bucket} failed: {e}") from e
        logger.debug(f"Uploaded {archive} to s3://{self.cfg.bucket}/{key}")
        return key

    def prune(self, prefix: str, older_than: datetime) -> List[str]:
        """
        Delete objects with prefix last modified before older_than

        Returns:
            Deleted keys as 's3:<key>'
        """
        if older_than.tzinfo is None:
            older_than = older_than.astimezone(timezone.utc)
        deleted = []
        try:
            paginator = self.client.get_paginator('list_objects_v2')
            for page in paginator.paginate(Bucket=self.cfg.bucket, Prefix=prefix):
                for obj in page.get('Contents', []):
                    if obj['LastModified'] < older_than:
                        self.client.delete_object(Bucket=self.cfg.bucket, Key=obj['Key'])
                        deleted.append(f"s3:{obj['Key']}")
        except (ClientError, BotoCoreError) as e:
            raise UploadError(f"Pruning s3://{self.cfg.bucket}/{prefix} failed: {e}") from e
        return deleted
