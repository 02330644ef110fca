from pathlib import Path

import pandas as pd
from loguru import logger

from trust4_sra_batch.file_types import RunSummary, StageStatus

SUMMARY_COLUMNS: list[str] = ['accession', 'stage', 'status', 'reason']


def summary_dataframe(summary: RunSummary) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                'accession': r.accession,
                'stage': r.stage,
                'status': r.status.value,
                'reason': r.reason or '',
            }
            for r in summary.results
        ],
        columns=SUMMARY_COLUMNS,
    )


def run(summary: RunSummary, out_path: Path) -> Path:
    """
    Writes one row per stage result to a TSV and logs the run totals.
    """
    summary_df: pd.DataFrame = summary_dataframe(summary)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open('w') as summary_fh:
        summary_df.to_csv(summary_fh, sep='\t', index=False, header=True)

    failed_downloads: int = summary.count(StageStatus.RECOVERABLE_FAILURE, stage='download')
    failed_samples: int = summary.count(StageStatus.RECOVERABLE_FAILURE) - failed_downloads
    logger.info(
        f'Run summary: {summary.listed} listed, '
        f'{summary.count(StageStatus.SKIPPED)} skipped, '
        f'{failed_downloads} failed downloads, '
        f'{summary.count(StageStatus.SUCCESS)} processed, '
        f'{failed_samples} failed samples, {summary.batches} batches'
    )
    logger.info(f'Run summary written to {out_path}')
    return out_path
