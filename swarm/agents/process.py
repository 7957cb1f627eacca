"""Subprocess execution shared by agents that drive external commands."""
from __future__ import annotations

import asyncio
import contextlib
from typing import Optional, Tuple


async def run_command(
    *argv: str,
    cwd: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Tuple[int, str, str]:
    """Run ``argv`` and return its exit status, stdout and stderr.

    Raises OSError when the command cannot be started and asyncio.TimeoutError
    after ``timeout`` seconds. The child is killed and reaped whenever the call
    ends before it exits, including when the awaiting task is cancelled.
    """
    proc = await asyncio.create_subprocess_exec(
        *argv,
        cwd=cwd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    finally:
        if proc.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()
    return (
        proc.returncode,
        stdout.decode(errors="replace").strip(),
        stderr.decode(errors="replace").strip(),
    )
