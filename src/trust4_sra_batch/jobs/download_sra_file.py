from pathlib import Path

from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from trust4_sra_batch import utils
from trust4_sra_batch.file_types import ScratchLayout
from trust4_sra_batch.s3_utils import S3ObjectStore


def run(store: S3ObjectStore, layout: ScratchLayout, key: str) -> Path | None:
    """
    Downloads one SRA object into the local scratch root.
    Returns the local path, or None if the download failed.
    """
    local_path: Path = layout.archive_path(key)
    try:
        layout.local_dir.mkdir(parents=True, exist_ok=True)
        store.download(key, local_path)
    except (ClientError, BotoCoreError, OSError) as e:
        logger.error(f'Failed to download {store.uri(key)}: {e}')
        utils.remove_path(local_path)
        return None

    logger.info(f'Downloaded {key} to {local_path}')
    return local_path
