#!/usr/bin/env python3


import sys
from argparse import ArgumentParser

from loguru import logger

from trust4_sra_batch.batch_runner import BatchRunner
from trust4_sra_batch.config import PipelineConfig, load_config
from trust4_sra_batch.constants import RUN_SUMMARY_NAME
from trust4_sra_batch.file_types import RunSummary
from trust4_sra_batch.jobs import write_run_summary
from trust4_sra_batch.jobs.list_sra_objects import NoSraFilesFoundError
from trust4_sra_batch.s3_utils import S3ObjectStore


def _configure_logging() -> None:
    logger.remove()
    logger.add(sink=sys.stdout, format='{time} - {level} - {message}')


def cli_main(argv: list[str] | None = None) -> int:
    # CLI entrypoint
    parser = ArgumentParser(description='Run TRUST4 over SRA archives stored in S3, in batches.')
    parser.add_argument('--dry_run', action='store_true', help='Dry run')
    args = parser.parse_args(argv)

    _configure_logging()

    # All settings come from the TOML files listed in CPG_CONFIG_PATH,
    # see trust4_sra_batch_defaults.toml for the available keys.
    config: PipelineConfig = load_config()
    store = S3ObjectStore(bucket=config.bucket)

    try:
        summary: RunSummary = BatchRunner(config=config, store=store).run(dry_run=args.dry_run)
    except NoSraFilesFoundError as e:
        logger.error(str(e))
        return 1

    if not args.dry_run:
        write_run_summary.run(summary, config.local_dir / RUN_SUMMARY_NAME)
    return 0


if __name__ == '__main__':
    sys.exit(cli_main())
