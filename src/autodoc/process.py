"""Async execution of the external documentation tools."""

import asyncio
import contextlib
import logging
import re
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class ProcessResult:
    """Exit status and decoded output of a finished process."""

    returncode: int
    stdout: str
    stderr: str


class ProcessTimeoutError(TimeoutError):
    """The process was killed after exceeding its timeout."""

    def __init__(self, command: list[str], timeout: float) -> None:
        super().__init__(f"command {command[0]!r} timed out after {timeout}s")
        self.command = command
        self.timeout = timeout


def fill_command(template: list[str], **values: str) -> list[str]:
    """Replace ``{name}`` placeholders in an argv template; other braces are left alone."""
    if not values:
        return list(template)
    # one pass per part, so substituted text is never rescanned
    pattern = re.compile(r"\{(" + "|".join(re.escape(name) for name in values) + r")\}")
    return [pattern.sub(lambda m: values[m.group(1)], part) for part in template]


async def run_process(
    command: list[str],
    *,
    cwd: Path | str | None = None,
    merge_stderr: bool = False,
    timeout: float | None = None,
) -> ProcessResult:
    """
    Run a command to completion and capture its output.

    Args:
        command: argv list; the first item is looked up on PATH
        cwd: Working directory for the process
        merge_stderr: Send stderr into stdout (combined output)
        timeout: Seconds to wait before killing the process; None waits forever

    Returns:
        ProcessResult with the exit code and decoded output

    Raises:
        OSError: If the process cannot be spawned
        ProcessTimeoutError: If the timeout elapses
    """
    logger.info("Running command: %s (cwd=%s)", command, cwd or ".")
    proc = await asyncio.create_subprocess_exec(
        *command,
        cwd=cwd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.STDOUT if merge_stderr else asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except TimeoutError:
        with contextlib.suppress(ProcessLookupError):
            proc.kill()
        await proc.wait()
        raise ProcessTimeoutError(command, timeout or 0.0) from None

    return ProcessResult(
        returncode=proc.returncode if proc.returncode is not None else -1,
        stdout=stdout.decode("utf-8", errors="replace") if stdout else "",
        stderr=stderr.decode("utf-8", errors="replace") if stderr else "",
    )
