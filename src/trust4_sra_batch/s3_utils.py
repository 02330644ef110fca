"""
This module centralizes all direct interactions with S3 through boto3.
It provides a thin wrapper around the handful of calls the pipeline needs:
list, existence check, download and upload.
"""

from collections.abc import Iterator
from pathlib import Path
from typing import Any, Final

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

NOT_FOUND_CODES: Final = frozenset({'404', 'NoSuchKey', 'NotFound'})


def get_s3_client() -> Any:
    """Creates an S3 client from the ambient AWS credentials (env, profile or instance role)."""
    return boto3.client('s3')


class S3ObjectStore:
    """Object storage operations scoped to a single bucket."""

    def __init__(self, bucket: str, client: Any = None) -> None:
        self.bucket: str = bucket
        self.client = client if client is not None else get_s3_client()

    def uri(self, key: str) -> str:
        return f's3://{self.bucket}/{key}'

    def iter_keys(self, prefix: str) -> Iterator[str]:
        """Yields every object key under prefix, in listing order, following pagination."""
        paginator = self.client.get_paginator('list_objects_v2')
        for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
            for obj in page.get('Contents', []):
                yield obj['Key']

    def list_keys(self, prefix: str, limit: int | None = None) -> list[str]:
        """
        Lists object keys under prefix, skipping directory markers (keys ending in '/').
        Stops once limit keys have been collected.
        """
        keys: list[str] = []
        for key in self.iter_keys(prefix):
            if key.endswith('/'):
                continue
            keys.append(key)
            if limit is not None and len(keys) >= limit:
                break
        return keys

    def exists(self, key: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            error_code: str = str(e.response.get('Error', {}).get('Code', ''))
            if error_code not in NOT_FOUND_CODES:
                logger.warning(f'Could not check {self.uri(key)} ({error_code}), treating it as missing: {e}')
            return False
        except BotoCoreError as e:
            logger.warning(f'Could not reach S3 to check {self.uri(key)}, treating it as missing: {e}')
            return False
        return True

    def download(self, key: str, destination: Path) -> Path:
        logger.info(f'Downloading {self.uri(key)} to {destination}...')
        self.client.download_file(self.bucket, key, str(destination))
        return destination

    def upload(self, source: Path, key: str) -> str:
        logger.info(f'Uploading {source} to {self.uri(key)}...')
        self.client.upload_file(str(source), self.bucket, key)
        return key
