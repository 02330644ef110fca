from typing import Final

# Remote layout
DEFAULT_BUCKET: Final = 'sra-source-large'
DEFAULT_SRA_PREFIX: Final = 'sra/'
DEFAULT_REPORTS_PREFIX: Final = 'reports/'
DEFAULT_ANNOTATIONS_PREFIX: Final = 'annotations/'

# TRUST4 file naming
REPORT_SUFFIX: Final = '_report.tsv'
ANNOTATION_SUFFIX: Final = '_annot.fa'
PARTIAL_CDR3_SUFFIX: Final = '.cdr3'
PARTIAL_FASTA_SUFFIX: Final = '.fa'
MERGED_CDR3_NAME: Final = 'merged.cdr3'
MERGED_FASTA_NAME: Final = 'merged.fa'
DEFAULT_FINAL_REPORT_NAME: Final = 'final_report'
TRUST4_PARTIAL_STAGES: Final = '1-2'

# Tools
DEFAULT_RUN_TRUST4: Final = 'TRUST4/run-trust4'
DEFAULT_SIMPLEREP: Final = 'TRUST4/trust-simplerep.pl'
DEFAULT_FASTERQ_DUMP: Final = 'fasterq-dump'
DEFAULT_BCRTCR_REFERENCE: Final = '~/TRUST4/hg38_bcrtcr.fa'
DEFAULT_IMGT_REFERENCE: Final = '~/TRUST4/human_IMGT+C.fa'
DEFAULT_THREADS: Final = 20

# Local scratch
DEFAULT_LOCAL_DIR: Final = '~/trust4_processing'
OUTPUT_DIR_NAME: Final = 'output'
PARTIAL_DIR_NAME: Final = 'partial_outputs'
RUN_SUMMARY_NAME: Final = 'run_summary.tsv'

DEFAULT_PARALLEL_JOBS: Final = 5
DEFAULT_DOWNLOAD_LIMIT: Final = 4102
