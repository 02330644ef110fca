from loguru import logger

from trust4_sra_batch.config import PipelineConfig
from trust4_sra_batch.s3_utils import S3ObjectStore


class NoSraFilesFoundError(RuntimeError):
    """Raised when the SRA prefix holds no objects to process."""


def run(store: S3ObjectStore, config: PipelineConfig) -> list[str]:
    """
    Lists the SRA object keys to process, at most config.download_limit of them.
    Raises NoSraFilesFoundError if there is nothing to process.
    """
    logger.info(f'Fetching list of SRA files from {store.uri(config.sra_prefix)}...')
    keys: list[str] = store.list_keys(prefix=config.sra_prefix, limit=config.download_limit)

    if not keys:
        logger.error(f'No files found under {store.uri(config.sra_prefix)}')
        raise NoSraFilesFoundError(f'No SRA files found under {store.uri(config.sra_prefix)}')

    logger.info(f'Found {len(keys)} SRA files to consider (limit {config.download_limit})')
    return keys
