"""Staging and writing rendered charts to files."""

import os
import shutil
import sys
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator

from .errors import SinkError
from .plot import Chart
from . import log

# File target meaning "write to standard output"
STDOUT = "-"


@contextmanager
def staged_chart(chart: Chart) -> Iterator[Path]:
    """Write the chart into a temporary file for the duration of the block.

    The file is removed when the block exits, whether or not it raised.
    """
    try:
        fd, name = tempfile.mkstemp(prefix="promplot-", suffix=f".{chart.format}")
    except OSError as e:
        raise SinkError(f"failed creating tmp file: {e}") from e

    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(chart.data)
        log.debug(f"Staged chart in {path}")
        yield path
    finally:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            log.warn(f"Failed deleting tmp file {path}: {e}")


def _copy(source: Path, out: BinaryIO) -> None:
    try:
        with open(source, "rb") as f:
            shutil.copyfileobj(f, out)
        out.flush()
    except OSError as e:
        raise SinkError(f"failed copying file: {e}") from e


def write_file(source: Path, target: str) -> None:
    """Copy a staged chart to `target`, or to stdout when target is "-".

    Raises:
        SinkError: If the target cannot be created or written
    """
    if target == STDOUT:
        log.info("Writing to stdout")
        _copy(source, sys.stdout.buffer)
        return

    log.info(f"Writing to '{target}'")
    try:
        out = open(target, "wb")
    except OSError as e:
        raise SinkError(f"failed creating file: {e}") from e

    with out:
        _copy(source, out)
