"""
Builds the immutable pipeline configuration from the cpg-utils TOML config
(files listed in CPG_CONFIG_PATH). Every key has a default matching the
original EC2 deployment, see trust4_sra_batch_defaults.toml.
"""

from dataclasses import dataclass
from pathlib import Path

from cpg_utils.config import config_retrieve
from loguru import logger

from trust4_sra_batch import constants
from trust4_sra_batch.file_types import ScratchLayout


@dataclass(frozen=True)
class PipelineConfig:
    bucket: str
    sra_prefix: str
    reports_prefix: str
    annotations_prefix: str
    bcrtcr_reference: Path
    imgt_reference: Path
    run_trust4: str
    simplerep: str
    trust4_threads: int
    final_report_name: str
    fasterq_dump: str
    fasterq_dump_threads: int
    local_dir: Path
    output_dir: Path
    partial_dir: Path
    parallel_jobs: int
    download_limit: int

    def scratch_layout(self) -> ScratchLayout:
        return ScratchLayout(
            local_dir=self.local_dir,
            partial_dir=self.partial_dir,
            output_dir=self.output_dir,
        )


def _as_prefix(value: str) -> str:
    """'reports' and 'reports/' both become 'reports/'."""
    return value.strip('/') + '/'


def _as_path(value: str) -> Path:
    return Path(value).expanduser()


def _positive_int(value: int | str, key: str) -> int:
    number = int(value)
    if number < 1:
        raise ValueError(f'[{key}] must be a positive integer, got {value}')
    return number


def load_config() -> PipelineConfig:
    """
    Reads every pipeline setting once and returns them as a PipelineConfig.
    """
    local_dir: Path = _as_path(config_retrieve(['workflow', 'local_dir'], default=constants.DEFAULT_LOCAL_DIR))
    output_dir: Path = _as_path(
        config_retrieve(['workflow', 'output_dir'], default=str(local_dir / constants.OUTPUT_DIR_NAME)),
    )
    partial_dir: Path = _as_path(
        config_retrieve(['workflow', 'partial_dir'], default=str(local_dir / constants.PARTIAL_DIR_NAME)),
    )

    config = PipelineConfig(
        bucket=config_retrieve(['storage', 'bucket'], default=constants.DEFAULT_BUCKET),
        sra_prefix=_as_prefix(config_retrieve(['storage', 'sra_prefix'], default=constants.DEFAULT_SRA_PREFIX)),
        reports_prefix=_as_prefix(
            config_retrieve(['storage', 'reports_prefix'], default=constants.DEFAULT_REPORTS_PREFIX),
        ),
        annotations_prefix=_as_prefix(
            config_retrieve(['storage', 'annotations_prefix'], default=constants.DEFAULT_ANNOTATIONS_PREFIX),
        ),
        bcrtcr_reference=_as_path(
            config_retrieve(['trust4', 'bcrtcr_reference'], default=constants.DEFAULT_BCRTCR_REFERENCE),
        ),
        imgt_reference=_as_path(
            config_retrieve(['trust4', 'imgt_reference'], default=constants.DEFAULT_IMGT_REFERENCE),
        ),
        run_trust4=config_retrieve(['trust4', 'run_trust4'], default=constants.DEFAULT_RUN_TRUST4),
        simplerep=config_retrieve(['trust4', 'simplerep'], default=constants.DEFAULT_SIMPLEREP),
        trust4_threads=_positive_int(
            config_retrieve(['trust4', 'threads'], default=constants.DEFAULT_THREADS),
            'trust4.threads',
        ),
        final_report_name=config_retrieve(
            ['trust4', 'final_report_name'],
            default=constants.DEFAULT_FINAL_REPORT_NAME,
        ),
        fasterq_dump=config_retrieve(['fasterq_dump', 'executable'], default=constants.DEFAULT_FASTERQ_DUMP),
        fasterq_dump_threads=_positive_int(
            config_retrieve(['fasterq_dump', 'threads'], default=constants.DEFAULT_THREADS),
            'fasterq_dump.threads',
        ),
        local_dir=local_dir,
        output_dir=output_dir,
        partial_dir=partial_dir,
        parallel_jobs=_positive_int(
            config_retrieve(['workflow', 'parallel_jobs'], default=constants.DEFAULT_PARALLEL_JOBS),
            'workflow.parallel_jobs',
        ),
        download_limit=_positive_int(
            config_retrieve(['workflow', 'download_limit'], default=constants.DEFAULT_DOWNLOAD_LIMIT),
            'workflow.download_limit',
        ),
    )
    logger.info(
        f'Loaded config: bucket={config.bucket}, local_dir={config.local_dir}, '
        f'parallel_jobs={config.parallel_jobs}, download_limit={config.download_limit}'
    )
    return config
