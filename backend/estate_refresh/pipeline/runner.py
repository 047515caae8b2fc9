"""External process runner: executes a stage command and reports a RunResult."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import time
from collections import deque
from collections.abc import Mapping, Sequence
from pathlib import Path

from .models import RunResult

logger = logging.getLogger(__name__)

Command = str | Sequence[str]

_CHUNK_SIZE = 64 * 1024
_STREAM_LIMIT = 1024 * 1024


class ExternalProcessRunner:
    """Runs external commands, forwarding their output to the log stream.

    A string command goes through the shell, so chains such as
    ``go build -o xmlsync . && ./xmlsync`` work as written. A sequence is
    executed directly without a shell.

    Each command runs in its own session so a timeout can kill the whole
    process tree, not just the shell.

    Every failure (non-zero exit, missing executable or working directory,
    timeout) comes back as ``RunResult(succeeded=False)``; ``run`` does not
    raise for process problems.
    """

    def __init__(self, stderr_tail_lines: int = 20):
        self.stderr_tail_lines = stderr_tail_lines

    async def run(
        self,
        command: Command,
        working_directory: Path,
        environment: Mapping[str, str] | None = None,
        timeout: float | None = None,
        label: str = "process",
    ) -> RunResult:
        """Run command in working_directory and wait for it to exit."""
        env = {**os.environ, **(environment or {})}
        start = time.perf_counter()

        logger.debug(f"[{label}] Spawning {command!r} in {working_directory}")

        try:
            if isinstance(command, str):
                process = await asyncio.create_subprocess_shell(
                    command,
                    cwd=working_directory,
                    env=env,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    limit=_STREAM_LIMIT,
                    start_new_session=True,
                )
            else:
                process = await asyncio.create_subprocess_exec(
                    *command,
                    cwd=working_directory,
                    env=env,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    limit=_STREAM_LIMIT,
                    start_new_session=True,
                )
        except OSError as e:
            logger.error(f"[{label}] Failed to start command: {e}")
            return RunResult(
                succeeded=False,
                error_message=f"Failed to start command: {e}",
                duration_seconds=time.perf_counter() - start,
            )

        stderr_tail: deque[str] = deque(maxlen=self.stderr_tail_lines)

        try:
            await asyncio.wait_for(
                asyncio.gather(
                    self._forward(process.stdout, logging.INFO, label),
                    self._forward(process.stderr, logging.WARNING, label, stderr_tail),
                    process.wait(),
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            await self._kill(process)
            logger.error(f"[{label}] Command timed out after {timeout}s")
            return RunResult(
                succeeded=False,
                exit_code=process.returncode,
                error_message=f"Command timed out after {timeout}s",
                duration_seconds=time.perf_counter() - start,
                timed_out=True,
            )

        duration = time.perf_counter() - start
        exit_code = process.returncode

        if exit_code != 0:
            message = f"Command failed with exit code {exit_code}"
            if stderr_tail:
                message += ": " + "\n".join(stderr_tail)
            return RunResult(
                succeeded=False,
                exit_code=exit_code,
                error_message=message,
                duration_seconds=duration,
            )

        return RunResult(succeeded=True, exit_code=0, duration_seconds=duration)

    async def _forward(
        self,
        stream: asyncio.StreamReader | None,
        level: int,
        label: str,
        tail: deque[str] | None = None,
    ) -> None:
        if stream is None:
            return
        while True:
            try:
                line = await stream.readline()
            except ValueError:
                # readline() drops a line longer than the stream limit.
                line = await stream.read(_CHUNK_SIZE)
            if not line:
                break
            text = line.decode(errors="replace").rstrip()
            logger.log(level, f"[{label}] {text}")
            if tail is not None and text:
                tail.append(text)

    async def _kill(self, process: asyncio.subprocess.Process) -> None:
        # The child leads its own session, so its pid is the process group id.
        # The group can outlive the shell itself.
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
        await process.wait()
