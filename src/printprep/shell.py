"""Awaitable external-command runner used by the printer backends."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence

from .errors import CommandError, CommandTimeoutError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CommandResult:
    returncode: int
    stdout: str
    stderr: str


def _decode(data: Optional[bytes]) -> str:
    # Windows shells may emit UTF-8 or the OEM code page; keep what decodes.
    return (data or b"").decode("utf-8", errors="replace")


async def run_command(
    args: Sequence[str],
    timeout: Optional[float] = None,
    check: bool = True,
) -> CommandResult:
    """
    Run ``args`` without a shell and return its decoded output.

    Raises ``CommandError`` when the executable is missing or, with ``check``,
    when it exits non-zero. Raises ``CommandTimeoutError`` on timeout; the
    child is killed first.
    """
    argv = [str(a) for a in args]
    logger.debug("exec: %s", subprocess.list2cmdline(argv))
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise CommandError(f"{argv[0]} could not be started: {exc}") from exc

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError as exc:
        with contextlib.suppress(ProcessLookupError):
            proc.kill()
        await proc.wait()
        raise CommandTimeoutError(
            f"{argv[0]} did not finish within {timeout:g}s"
        ) from exc

    result = CommandResult(
        returncode=proc.returncode if proc.returncode is not None else -1,
        stdout=_decode(stdout),
        stderr=_decode(stderr),
    )
    if check and result.returncode != 0:
        out = (result.stderr or result.stdout).strip()
        raise CommandError(
            f"{argv[0]} failed (rc={result.returncode}): {out}",
            returncode=result.returncode,
            output=out,
        )
    return result
