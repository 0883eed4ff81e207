"""File helpers."""

import asyncio
import json
import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, IO


logger = logging.getLogger(__name__)


@contextmanager
def atomic_write(path: Path, mode: int = 0o600) -> Iterator[IO[bytes]]:
    """Write a file so that readers see either the old or the new content.

    Yields a binary file object for a temporary file in the target's
    directory.  When the block completes the data is flushed to disk and
    the temporary file is renamed over ``path``; if the block (or the
    rename) fails the temporary file is removed and ``path`` is untouched.
    """
    path = Path(path)
    tmp_file = tempfile.NamedTemporaryFile(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", delete=False
    )
    tmp_path = Path(tmp_file.name)

    try:
        with tmp_file:
            yield tmp_file
            tmp_file.flush()
            os.fsync(tmp_file.fileno())
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def write_file_atomic(path: Path, data: bytes, mode: int = 0o600) -> None:
    """Atomically replace ``path`` with ``data``."""
    with atomic_write(path, mode) as f:
        f.write(data)
    logger.debug(f"Wrote {len(data)} bytes to {path}")


async def write_file_atomic_async(path: Path, data: bytes, mode: int = 0o600) -> None:
    """Atomically replace ``path`` with ``data`` without blocking the loop."""
    await asyncio.to_thread(write_file_atomic, path, data, mode)


async def read_bytes(path: Path) -> bytes:
    """Read a file without blocking the event loop."""
    return await asyncio.to_thread(Path(path).read_bytes)


def read_json(path: Path, default: Any = None) -> Any:
    """Load a JSON document, returning ``default`` if the file is absent."""
    try:
        content = Path(path).read_text()
    except FileNotFoundError:
        return default
    return json.loads(content)


def write_json(path: Path, data: Any, mode: int = 0o600) -> None:
    """Atomically write a JSON document."""
    write_file_atomic(path, json.dumps(data, indent=2).encode(), mode)
