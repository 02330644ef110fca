"""
Per-sample worker: converts one SRA archive to paired FASTQ and runs
TRUST4 stages 1-2, writing accession-prefixed partial outputs into the
shared partial directory. The accession's own scratch (FASTQ directory and
archive) is always removed before returning.
"""

import subprocess
from pathlib import Path

from loguru import logger

from trust4_sra_batch import utils
from trust4_sra_batch.config import PipelineConfig
from trust4_sra_batch.constants import TRUST4_PARTIAL_STAGES
from trust4_sra_batch.file_types import ScratchLayout, StageResult, StageStatus


def _build_fasterq_dump_command(config: PipelineConfig, archive_path: Path, fastq_dir: Path) -> list[str]:
    return [
        config.fasterq_dump,
        str(archive_path),
        '-O',
        str(fastq_dir),
        '--split-files',
        '--threads',
        str(config.fasterq_dump_threads),
    ]


def _build_trust4_partial_command(config: PipelineConfig, layout: ScratchLayout, accession: str) -> list[str]:
    mate_1, mate_2 = layout.mate_paths(accession)
    return [
        config.run_trust4,
        '-f',
        str(config.bcrtcr_reference),
        '--ref',
        str(config.imgt_reference),
        '-1',
        str(mate_1),
        '-2',
        str(mate_2),
        '-t',
        str(config.trust4_threads),
        '--od',
        str(layout.partial_dir),
        '-o',
        accession,
        '--stage',
        TRUST4_PARTIAL_STAGES,
    ]


def _run_step(cmd: list[str], step_name: str, accession: str) -> StageResult:
    try:
        utils.run_subprocess_with_log(cmd, f'{step_name} {accession}')
    except subprocess.CalledProcessError as e:
        return StageResult(
            accession=accession,
            stage=step_name,
            status=StageStatus.RECOVERABLE_FAILURE,
            reason=f'exit code {e.returncode}',
        )
    except OSError as e:
        logger.error(f'Could not start {step_name} for {accession}: {e}')
        return StageResult(
            accession=accession,
            stage=step_name,
            status=StageStatus.RECOVERABLE_FAILURE,
            reason=str(e),
        )
    return StageResult(accession=accession, stage=step_name, status=StageStatus.SUCCESS)


def run(
    config: PipelineConfig,
    layout: ScratchLayout,
    archive_path: Path,
    accession: str,
) -> StageResult:
    fastq_dir: Path = layout.fastq_dir(accession)
    logger.info(f'Processing {accession}')
    try:
        fastq_dir.mkdir(parents=True, exist_ok=True)

        logger.info(f'Converting {archive_path} to FASTQ...')
        result: StageResult = _run_step(
            _build_fasterq_dump_command(config, archive_path, fastq_dir),
            'fasterq-dump',
            accession,
        )
        if not result.ok:
            logger.error(f'Error converting {archive_path} to FASTQ.')
            return result

        logger.info(f'Running TRUST4 stages {TRUST4_PARTIAL_STAGES} on {accession}...')
        result = _run_step(
            _build_trust4_partial_command(config, layout, accession),
            'trust4-partial',
            accession,
        )
        if not result.ok:
            logger.error(f'TRUST4 failed on {accession}.')
            return result

        logger.info(f'Completed processing {accession} (stages {TRUST4_PARTIAL_STAGES})')
        return result
    finally:
        utils.remove_path(fastq_dir)
        utils.remove_path(archive_path)
