"""
This module defines shared data structures and types used across the pipeline.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath


class StageStatus(str, Enum):
    SUCCESS = 'success'
    SKIPPED = 'skipped'
    RECOVERABLE_FAILURE = 'recoverable_failure'


@dataclass(frozen=True)
class StageResult:
    """The outcome of running one pipeline stage for one accession."""

    accession: str
    stage: str  # e.g., 'download', 'fasterq-dump', 'trust4-partial'
    status: StageStatus
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == StageStatus.SUCCESS


@dataclass(frozen=True)
class BatchEntry:
    """A downloaded archive waiting to be processed."""

    accession: str
    archive_path: Path


@dataclass
class FinalizeResult:
    batch_index: int
    accessions: list[str]
    uploaded_keys: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class RunSummary:
    run_id: str = ''
    listed: int = 0
    batches: int = 0
    results: list[StageResult] = field(default_factory=list)
    finalized: list[FinalizeResult] = field(default_factory=list)

    def count(self, status: StageStatus, stage: str | None = None) -> int:
        return sum(1 for r in self.results if r.status == status and (stage is None or r.stage == stage))


def accession_from_key(key: str) -> str:
    """
    Derives the accession from an object key: the basename up to the first '.'.
    e.g. 'sra/batch1/SRR1234567.sra' -> 'SRR1234567'
    """
    return PurePosixPath(key).name.split('.', 1)[0]


@dataclass(frozen=True)
class ScratchLayout:
    """Groups every local scratch path used by the pipeline.

    Per-accession paths are disjoint between accessions. The partial and output
    directories are shared by all workers of a batch and rely on accession-prefixed
    file names.
    """

    local_dir: Path
    partial_dir: Path
    output_dir: Path

    def archive_path(self, key: str) -> Path:
        return self.local_dir / PurePosixPath(key).name

    def fastq_dir(self, accession: str) -> Path:
        return self.local_dir / f'{accession}_fastq'

    def mate_paths(self, accession: str) -> tuple[Path, Path]:
        fastq_dir: Path = self.fastq_dir(accession)
        return fastq_dir / f'{accession}_1.fastq', fastq_dir / f'{accession}_2.fastq'

    def create(self) -> None:
        for directory in (self.local_dir, self.partial_dir, self.output_dir):
            directory.mkdir(parents=True, exist_ok=True)
