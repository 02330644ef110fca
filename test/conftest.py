"""
Global pytest configuration and fixtures.
"""

import subprocess
from functools import reduce
from pathlib import Path
from unittest import mock

import pytest

from trust4_sra_batch.config import PipelineConfig
from trust4_sra_batch.file_types import ScratchLayout

# A minimal mock config in the shape of trust4_sra_batch_defaults.toml.
# Keys missing here fall back to the defaults passed to config_retrieve.
MOCK_CONFIG = {
    'storage': {
        'bucket': 'mock-sra-bucket',
        'reports_prefix': 'reports',
    },
    'trust4': {
        'bcrtcr_reference': '~/refs/hg38_bcrtcr.fa',
        'threads': 8,
    },
    'workflow': {
        'local_dir': '/scratch/trust4_processing',
        'parallel_jobs': 3,
    },
}


def _mock_config_retrieve(keys, default=None):
    """
    A helper function that simulates the real config_retrieve
    by traversing the MOCK_CONFIG dictionary.
    """
    try:
        return reduce(lambda d, k: d[k], keys, MOCK_CONFIG)
    except (KeyError, TypeError):
        if default is not None:
            return default
        raise KeyError(f'Mock config key not found in MOCK_CONFIG: {keys}')


@pytest.fixture
def mock_config_retrieve():
    """
    Patches config_retrieve where trust4_sra_batch.config looks it up,
    so load_config reads MOCK_CONFIG instead of CPG_CONFIG_PATH.
    """
    with mock.patch('trust4_sra_batch.config.config_retrieve') as mock_retrieve:
        mock_retrieve.side_effect = _mock_config_retrieve
        yield mock_retrieve


@pytest.fixture
def pipeline_config(tmp_path: Path) -> PipelineConfig:
    local_dir = tmp_path / 'scratch'
    return PipelineConfig(
        bucket='mock-sra-bucket',
        sra_prefix='sra/',
        reports_prefix='reports/',
        annotations_prefix='annotations/',
        bcrtcr_reference=tmp_path / 'refs' / 'hg38_bcrtcr.fa',
        imgt_reference=tmp_path / 'refs' / 'human_IMGT+C.fa',
        run_trust4='run-trust4',
        simplerep='trust-simplerep.pl',
        trust4_threads=4,
        final_report_name='final_report',
        fasterq_dump='fasterq-dump',
        fasterq_dump_threads=4,
        local_dir=local_dir,
        output_dir=local_dir / 'output',
        partial_dir=local_dir / 'partial_outputs',
        parallel_jobs=5,
        download_limit=100,
    )


@pytest.fixture
def layout(pipeline_config: PipelineConfig) -> ScratchLayout:
    scratch: ScratchLayout = pipeline_config.scratch_layout()
    scratch.create()
    return scratch


class FakeObjectStore:
    """In-memory stand-in for S3ObjectStore."""

    def __init__(self, bucket: str = 'mock-sra-bucket') -> None:
        self.bucket = bucket
        self.objects: dict[str, bytes] = {}
        self.downloaded: list[str] = []
        self.uploaded: dict[str, bytes] = {}
        self.fail_downloads: set[str] = set()

    def uri(self, key: str) -> str:
        return f's3://{self.bucket}/{key}'

    def list_keys(self, prefix: str, limit: int | None = None) -> list[str]:
        keys = [k for k in self.objects if k.startswith(prefix) and not k.endswith('/')]
        return keys[:limit] if limit is not None else keys

    def exists(self, key: str) -> bool:
        return key in self.objects

    def download(self, key: str, destination: Path) -> Path:
        self.downloaded.append(key)
        if key in self.fail_downloads:
            destination.write_bytes(b'partial')
            raise OSError(f'Simulated download failure for {key}')
        destination.write_bytes(self.objects[key])
        return destination

    def upload(self, source: Path, key: str) -> str:
        self.uploaded[key] = source.read_bytes()
        self.objects[key] = self.uploaded[key]
        return key


@pytest.fixture
def fake_store() -> FakeObjectStore:
    return FakeObjectStore()


def _option(cmd: list[str], flag: str) -> str:
    return cmd[cmd.index(flag) + 1]


class FakeToolRunner:
    """
    Simulates fasterq-dump, run-trust4 and trust-simplerep.pl by writing the
    files each tool would produce. Accessions in fail_conversion/fail_assembly
    make the matching tool exit non-zero.
    """

    def __init__(self) -> None:
        self.fail_conversion: set[str] = set()
        self.fail_assembly: set[str] = set()
        self.simplerep_returncode: int = 0
        self.commands: list[list[str]] = []

    def __call__(self, cmd: list[str], step_name: str, check: bool = True) -> subprocess.CompletedProcess:
        self.commands.append(cmd)
        tool = Path(cmd[0]).name
        if tool == 'fasterq-dump':
            accession = Path(cmd[1]).name.split('.', 1)[0]
            if accession in self.fail_conversion:
                raise subprocess.CalledProcessError(3, cmd, output='', stderr='conversion failed')
            out_dir = Path(_option(cmd, '-O'))
            for mate in (1, 2):
                (out_dir / f'{accession}_{mate}.fastq').write_text(f'@{accession}.{mate}\nACGT\n+\nIIII\n')
        elif tool == 'run-trust4':
            accession = _option(cmd, '-o')
            if accession in self.fail_assembly:
                raise subprocess.CalledProcessError(1, cmd, output='', stderr='assembly failed')
            out_dir = Path(_option(cmd, '--od'))
            (out_dir / f'{accession}.cdr3').write_text(f'{accession}\tCASSL\n')
            (out_dir / f'{accession}_annot.fa').write_text(f'>{accession}_assemble0\nACGT\n')
            (out_dir / f'{accession}_toassemble_1.fq').write_text('')
        elif tool == 'trust-simplerep.pl':
            out_dir = Path(_option(cmd, '--od'))
            name = _option(cmd, '-o')
            if self.simplerep_returncode == 0:
                (out_dir / f'{name}_report.tsv').write_text('#count\tfrequency\tCDR3nt\n')
                (out_dir / f'{name}_annot.fa').write_text('>merged\nACGT\n')
                (out_dir / f'{name}_cdr3.out').write_text('')
            return subprocess.CompletedProcess(cmd, self.simplerep_returncode, stdout='', stderr='')
        return subprocess.CompletedProcess(cmd, 0, stdout='', stderr='')


@pytest.fixture
def fake_tools():
    runner = FakeToolRunner()
    with mock.patch('trust4_sra_batch.utils.run_subprocess_with_log', side_effect=runner):
        yield runner
