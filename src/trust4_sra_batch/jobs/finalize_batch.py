"""
Batch finalizer: merges the partial TRUST4 outputs of every sample in a batch,
runs TRUST4's final reporting stage once, uploads reports and annotations, and
purges the shared batch directories.

None of these steps stop the run. Failures are logged as warnings and returned
in the FinalizeResult so the next batch can proceed.
"""

import subprocess
from pathlib import Path

from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from trust4_sra_batch import utils
from trust4_sra_batch.config import PipelineConfig
from trust4_sra_batch.constants import (
    ANNOTATION_SUFFIX,
    MERGED_CDR3_NAME,
    MERGED_FASTA_NAME,
    PARTIAL_CDR3_SUFFIX,
    PARTIAL_FASTA_SUFFIX,
    REPORT_SUFFIX,
)
from trust4_sra_batch.file_types import FinalizeResult, ScratchLayout
from trust4_sra_batch.s3_utils import S3ObjectStore


def _final_report_name(config: PipelineConfig, run_id: str, batch_index: int) -> str:
    return f'{config.final_report_name}_{run_id}_batch{batch_index:04d}'


def _build_simplerep_command(config: PipelineConfig, layout: ScratchLayout, report_name: str) -> list[str]:
    return [
        config.simplerep,
        '-f',
        str(layout.output_dir / MERGED_FASTA_NAME),
        '--od',
        str(layout.output_dir),
        '-o',
        report_name,
    ]


def _partial_files(partial_dir: Path, suffix: str) -> list[Path]:
    return sorted(p for p in partial_dir.glob(f'*{suffix}') if p.is_file())


def _destination_prefix(config: PipelineConfig, file_name: str) -> str | None:
    """Maps an output file name to its bucket prefix, or None if it is not uploaded."""
    if file_name.endswith(ANNOTATION_SUFFIX):
        return config.annotations_prefix
    if file_name.endswith(REPORT_SUFFIX):
        return config.reports_prefix
    return None


def _merge_partial_outputs(layout: ScratchLayout) -> int:
    layout.output_dir.mkdir(parents=True, exist_ok=True)
    cdr3_files: list[Path] = _partial_files(layout.partial_dir, PARTIAL_CDR3_SUFFIX)
    fasta_files: list[Path] = _partial_files(layout.partial_dir, PARTIAL_FASTA_SUFFIX)
    utils.concatenate_files(cdr3_files, layout.output_dir / MERGED_CDR3_NAME)
    utils.concatenate_files(fasta_files, layout.output_dir / MERGED_FASTA_NAME)
    return len(cdr3_files) + len(fasta_files)


def _upload_outputs(store: S3ObjectStore, config: PipelineConfig, layout: ScratchLayout, result: FinalizeResult) -> None:
    for output_file in sorted(layout.output_dir.iterdir()):
        if not output_file.is_file():
            continue
        prefix: str | None = _destination_prefix(config, output_file.name)
        if prefix is None:
            continue
        key = f'{prefix}{output_file.name}'
        try:
            result.uploaded_keys.append(store.upload(output_file, key))
        except (ClientError, BotoCoreError, S3UploadFailedError, OSError) as e:
            message = f'Upload of {output_file.name} to {store.uri(key)} failed: {e}'
            logger.warning(message)
            result.warnings.append(message)


def run(
    store: S3ObjectStore,
    config: PipelineConfig,
    layout: ScratchLayout,
    batch_index: int,
    accessions: list[str],
    run_id: str,
) -> FinalizeResult:
    result = FinalizeResult(batch_index=batch_index, accessions=list(accessions))
    report_name: str = _final_report_name(config, run_id, batch_index)
    logger.info(f'Running final stage on partial outputs of batch {batch_index} ({len(accessions)} samples)...')
    try:
        if _merge_partial_outputs(layout) == 0:
            message = f'No partial outputs found in {layout.partial_dir} for batch {batch_index}'
            logger.warning(message)
            result.warnings.append(message)
            return result

        logger.info(f'Running {config.simplerep} on merged outputs...')
        try:
            process: subprocess.CompletedProcess[str] = utils.run_subprocess_with_log(
                _build_simplerep_command(config, layout, report_name),
                f'trust-simplerep batch {batch_index}',
                check=False,
            )
            if process.returncode != 0:
                result.warnings.append(f'trust-simplerep exited with return code {process.returncode}')
        except OSError as e:
            message = f'Could not start {config.simplerep}: {e}'
            logger.warning(message)
            result.warnings.append(message)

        logger.info('Uploading final results...')
        _upload_outputs(store, config, layout, result)
        logger.info(f'Uploaded {len(result.uploaded_keys)} files for batch {batch_index}')
    except Exception as e:  # noqa: BLE001
        message = f'Final stage for batch {batch_index} failed: {e}'
        logger.warning(message)
        result.warnings.append(message)
    finally:
        utils.empty_directory(layout.partial_dir)
        utils.empty_directory(layout.output_dir)

    return result
