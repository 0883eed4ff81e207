"""Subprocess helpers."""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

from scaffold.errors import StoreOperationError


logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Result from running a command."""
    returncode: int
    stdout: str = ""
    stderr: str = ""


async def run_command(
    cmd: List[str],
    check: bool = True,
    timeout: Optional[int] = None,
) -> CommandResult:
    """Run a helper command, capturing its output.

    Raises StoreOperationError if the program is missing, times out or,
    when ``check`` is set, exits non-zero.
    """
    logger.debug(f"Running command: {' '.join(cmd)}")

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise StoreOperationError(f"{cmd[0]}: command not found") from e

    try:
        stdout, stderr = await asyncio.wait_for(
            process.communicate(),
            timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        raise StoreOperationError(f"{cmd[0]} timed out after {timeout}s")

    result = CommandResult(
        returncode=process.returncode,
        stdout=stdout.decode(errors="replace") if stdout else "",
        stderr=stderr.decode(errors="replace") if stderr else "",
    )

    if check and result.returncode != 0:
        detail = result.stderr.strip() or result.stdout.strip()
        raise StoreOperationError(
            f"{cmd[0]} exited with status {result.returncode}: {detail}"
        )

    return result
