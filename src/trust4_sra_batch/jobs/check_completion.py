from trust4_sra_batch.config import PipelineConfig
from trust4_sra_batch.constants import REPORT_SUFFIX
from trust4_sra_batch.s3_utils import S3ObjectStore


def report_key(config: PipelineConfig, accession: str) -> str:
    return f'{config.reports_prefix}{accession}{REPORT_SUFFIX}'


def is_processed(store: S3ObjectStore, config: PipelineConfig, accession: str) -> bool:
    """An accession counts as processed once its report exists in the bucket."""
    return store.exists(report_key(config, accession))
