import re
import shutil
import subprocess
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from loguru import logger


def validate_cli_path_input(path: str, arg_name: str) -> None:
    """
    Validates that a path string does not contain shell metacharacters
    to prevent potential injection vulnerabilities.
    """
    # Regex for common shell metacharacters and whitespace,
    # excluding 's3://' prefixes, path slashes '/', and underscores '_'
    if re.search(r'[;&|$`(){}[\]<>*?!#\s]', path):
        logger.error(f'Invalid characters found in {arg_name}: {path}')
        raise ValueError(f'Potential unsafe characters in {arg_name}')


def run_subprocess_with_log(
    cmd: list[str],
    step_name: str,
    check: bool = True,
) -> subprocess.CompletedProcess[Any]:
    """
    Runs a subprocess command with robust logging.
    Logs the command, its output, and errors if any occur.

    With check=False a non-zero exit is logged and the completed process
    is returned to the caller instead of raising.
    """
    cmd_str = ' '.join(cmd)
    logger.info(f'Running {step_name} command: {cmd_str}')
    try:
        process: subprocess.CompletedProcess[str] = subprocess.run(  # noqa: S603
            cmd,
            check=check,
            capture_output=True,
            text=True,
        )
    except subprocess.CalledProcessError as e:
        logger.error(f'{step_name} failed with return code {e.returncode}')
        logger.error(f'CMD: {cmd_str}')
        logger.error(f'STDOUT: {e.stdout}')
        logger.error(f'STDERR: {e.stderr}')
        raise

    if process.returncode == 0:
        logger.info(f'{step_name} completed successfully.')
    else:
        logger.warning(f'{step_name} exited with return code {process.returncode}')
    if process.stdout:
        logger.info(f'{step_name} STDOUT:\n{process.stdout.strip()}')
    if process.stderr:
        logger.info(f'{step_name} STDERR:\n{process.stderr.strip()}')
    return process


def remove_path(path: Path) -> None:
    """Removes a file or directory tree if it exists."""
    if path.is_dir():
        shutil.rmtree(path, ignore_errors=True)
        logger.info(f'Removed local directory: {path}')
    elif path.exists():
        path.unlink(missing_ok=True)
        logger.info(f'Removed local file: {path}')


def empty_directory(directory: Path) -> None:
    """Deletes everything inside a directory, keeping the directory itself."""
    if not directory.is_dir():
        return
    for child in directory.iterdir():
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child, ignore_errors=True)
        else:
            child.unlink(missing_ok=True)
    logger.info(f'Purged contents of {directory}')


def concatenate_files(sources: Iterable[Path], destination: Path) -> int:
    """Streams sources into destination in the given order. Returns the number of files merged."""
    merged = 0
    with destination.open('wb') as out_fh:
        for source in sources:
            with source.open('rb') as in_fh:
                shutil.copyfileobj(in_fh, out_fh)
            merged += 1
    logger.info(f'Merged {merged} files into {destination}')
    return merged
