"""
Drives the pipeline: list, skip already reported accessions, download into
fixed-size batches, process each batch with bounded parallelism, then
finalize it before starting the next one.
"""

from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from datetime import datetime, timezone

from loguru import logger

from trust4_sra_batch import utils
from trust4_sra_batch.config import PipelineConfig
from trust4_sra_batch.file_types import (
    BatchEntry,
    FinalizeResult,
    RunSummary,
    ScratchLayout,
    StageResult,
    StageStatus,
    accession_from_key,
)
from trust4_sra_batch.jobs import (
    check_completion,
    download_sra_file,
    finalize_batch,
    list_sra_objects,
    process_sample,
)
from trust4_sra_batch.s3_utils import S3ObjectStore


def new_run_id() -> str:
    """UTC timestamp naming this run's batch reports, e.g. 20261019T142501Z."""
    return datetime.now(timezone.utc).strftime('%Y%m%dT%H%M%SZ')


class BatchRunner:
    def __init__(
        self,
        config: PipelineConfig,
        store: S3ObjectStore,
        layout: ScratchLayout | None = None,
    ) -> None:
        self.config: PipelineConfig = config
        self.store: S3ObjectStore = store
        self.layout: ScratchLayout = layout or config.scratch_layout()

    def _prepare_entry(
        self,
        key: str,
        summary: RunSummary,
        queued: set[str],
        dry_run: bool,
    ) -> BatchEntry | None:
        """Returns a downloaded batch entry for key, or None if it is skipped."""
        accession: str = accession_from_key(key)
        logger.info(f'Beginning {accession}...')
        try:
            utils.validate_cli_path_input(accession, 'accession')
        except ValueError as e:
            summary.results.append(
                StageResult(accession=accession, stage='validate', status=StageStatus.SKIPPED, reason=str(e)),
            )
            return None

        # Accessions share scratch paths, so one accession per batch.
        if accession in queued:
            logger.warning(f'Skipping {key}: {accession} is already queued in the current batch')
            summary.results.append(
                StageResult(
                    accession=accession,
                    stage='duplicate',
                    status=StageStatus.SKIPPED,
                    reason='accession already queued in this batch',
                ),
            )
            return None

        if check_completion.is_processed(self.store, self.config, accession):
            logger.info(f'Skipping {key} as it has already been processed...')
            summary.results.append(
                StageResult(
                    accession=accession,
                    stage='completion-check',
                    status=StageStatus.SKIPPED,
                    reason='report already exists',
                ),
            )
            return None

        if dry_run:
            logger.info(f'[dry run] Would download and process {self.store.uri(key)}')
            return None

        local_path = download_sra_file.run(self.store, self.layout, key)
        if local_path is None:
            summary.results.append(
                StageResult(
                    accession=accession,
                    stage='download',
                    status=StageStatus.RECOVERABLE_FAILURE,
                    reason=f'failed to download {key}',
                ),
            )
            return None
        return BatchEntry(accession=accession, archive_path=local_path)

    def _process_batch(self, batch: list[BatchEntry]) -> list[StageResult]:
        results: list[StageResult] = []
        with ThreadPoolExecutor(max_workers=self.config.parallel_jobs) as executor:
            future_to_entry: dict[Future[StageResult], BatchEntry] = {
                executor.submit(process_sample.run, self.config, self.layout, entry.archive_path, entry.accession): entry
                for entry in batch
            }
            for future in as_completed(future_to_entry):
                entry: BatchEntry = future_to_entry[future]
                try:
                    results.append(future.result())
                except Exception as e:  # noqa: BLE001
                    logger.exception(f'Unexpected error processing {entry.accession}: {e}')
                    results.append(
                        StageResult(
                            accession=entry.accession,
                            stage='process-sample',
                            status=StageStatus.RECOVERABLE_FAILURE,
                            reason=str(e),
                        ),
                    )
        return results

    def _flush(self, batch: list[BatchEntry], summary: RunSummary) -> None:
        summary.batches += 1
        accessions: list[str] = [entry.accession for entry in batch]
        logger.info(f'Processing batch {summary.batches}: {", ".join(accessions)}')

        results: list[StageResult] = self._process_batch(batch)
        summary.results.extend(results)
        failed: list[str] = [r.accession for r in results if not r.ok]
        if failed:
            logger.warning(f'{len(failed)} of {len(batch)} samples failed in batch {summary.batches}: {failed}')

        finalize_result: FinalizeResult = finalize_batch.run(
            self.store,
            self.config,
            self.layout,
            batch_index=summary.batches,
            accessions=accessions,
            run_id=summary.run_id,
        )
        summary.finalized.append(finalize_result)

    def run(self, dry_run: bool = False, run_id: str | None = None) -> RunSummary:
        summary = RunSummary(run_id=run_id or new_run_id())
        logger.info(f'Starting run {summary.run_id}')
        keys: list[str] = list_sra_objects.run(self.store, self.config)
        summary.listed = len(keys)

        if not dry_run:
            self.layout.create()

        batch: list[BatchEntry] = []
        for key in keys:
            entry: BatchEntry | None = self._prepare_entry(
                key,
                summary,
                {queued.accession for queued in batch},
                dry_run,
            )
            if entry is None:
                continue
            batch.append(entry)

            if len(batch) == self.config.parallel_jobs:
                self._flush(batch, summary)
                batch = []

        if batch:
            self._flush(batch, summary)

        logger.info('Processing complete.')
        return summary
