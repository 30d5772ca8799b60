"""
Atomic publishing of the encoded feed documents.

The serving layer reads the output files with no coordination, so each
file is written to a temporary file in the same directory, flushed to disk
and swapped into place with ``os.replace``. Readers see either the old
document or the new one, never a partial write.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from pogo_feed.errors import PublishFailed

logger = logging.getLogger(__name__)


OUTPUT_MODE = 0o644


def _stage(path: Path, data: bytes) -> Path:
    """Write data to a temp file beside path and return the temp path."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    except OSError as e:
        raise PublishFailed(f"Cannot create temporary file for {path}: {e.strerror or e}", path=path) from e

    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_path, OUTPUT_MODE)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        raise PublishFailed(f"Cannot write temporary file for {path}: {e.strerror or e}", path=path) from e
    return tmp_path

def _backup(path: Path) -> Optional[Path]:
    """Stage a copy of the currently published file, if there is one."""
    if not path.is_file():
        return None
    try:
        previous = path.read_bytes()
    except OSError as e:
        raise PublishFailed(f"Cannot read published file {path}: {e.strerror or e}", path=path) from e
    return _stage(path, previous)


def _roll_back(swapped: Sequence[Tuple[Path, Optional[Path]]]) -> None:
    for path, backup in reversed(swapped):
        try:
            if backup is None:
                path.unlink(missing_ok=True)
            else:
                os.replace(backup, path)
        except OSError as e:
            logger.error("Cannot restore %s: %s", path, e.strerror or e)
        else:
            logger.debug("Restored %s", path)


def publish(outputs: Sequence[Tuple[Union[str, Path], bytes]]) -> None:
    """
    Atomically replace each output path with its new contents.

    Every document, and a copy of every currently published document, is
    staged before any is swapped in. If a swap fails, the documents already
    swapped are put back, so either all outputs change or none do.

    Args:
        outputs: (path, data) pairs

    Raises:
        PublishFailed: If a document cannot be staged or swapped into place
    """
    temp_files: List[Path] = []
    pending: List[Tuple[Path, Path, Optional[Path]]] = []
    try:
        for path, data in outputs:
            path = Path(path)
            backup = _backup(path)
            if backup is not None:
                temp_files.append(backup)
            tmp_path = _stage(path, data)
            temp_files.append(tmp_path)
            pending.append((path, tmp_path, backup))

        swapped: List[Tuple[Path, Optional[Path]]] = []
        for path, tmp_path, backup in pending:
            try:
                os.replace(tmp_path, path)
            except OSError as e:
                _roll_back(swapped)
                raise PublishFailed(f"Cannot replace {path}: {e.strerror or e}", path=path) from e
            swapped.append((path, backup))
            logger.debug("Published %s", path)
    finally:
        for tmp_path in temp_files:
            tmp_path.unlink(missing_ok=True)
