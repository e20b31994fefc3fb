"""Async subprocess helpers.

External tools (ffmpeg, whisper.cpp, openai-whisper) run as asyncio child
processes. A timeout or a cancelled caller kills the child and waits for it
before the error propagates, so no tool outlives the task that started it.
"""

from __future__ import annotations

import asyncio
import contextlib
import subprocess
from dataclasses import dataclass
from typing import Sequence

from subtune.error_codes import ErrorCode
from subtune.exceptions import BackendUnavailableError


@dataclass(frozen=True)
class RunResult:
    returncode: int
    stdout: bytes
    stderr: bytes

    def stderr_tail(self, limit: int = 2000) -> str:
        return self.stderr.decode("utf-8", errors="replace")[-limit:]


async def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
    await process.wait()


async def run_subprocess(
    args: Sequence[str],
    *,
    capture_output: bool = True,
    check: bool = False,
    timeout_s: float | None = None,
) -> RunResult:
    """Run `args` and collect its output.

    Raises:
        FileNotFoundError: the binary does not exist.
        subprocess.TimeoutExpired: `timeout_s` elapsed; the child was killed.
        subprocess.CalledProcessError: non-zero exit with `check=True`.
    """
    stream = asyncio.subprocess.PIPE if capture_output else asyncio.subprocess.DEVNULL
    process = await asyncio.create_subprocess_exec(*args, stdout=stream, stderr=stream)
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout_s)
    except asyncio.TimeoutError as exc:
        await _kill(process)
        raise subprocess.TimeoutExpired(list(args), timeout_s or 0.0) from exc
    except asyncio.CancelledError:
        await _kill(process)
        raise

    result = RunResult(
        returncode=int(process.returncode if process.returncode is not None else -1),
        stdout=stdout or b"",
        stderr=stderr or b"",
    )
    if check and result.returncode != 0:
        raise subprocess.CalledProcessError(result.returncode, list(args), result.stdout, result.stderr)
    return result


async def run_tool(
    provider: str,
    args: Sequence[str],
    *,
    timeout_s: float | None = None,
) -> RunResult:
    """Run an external tool, mapping launch failures and non-zero exits to BackendUnavailableError."""
    try:
        result = await run_subprocess(args, timeout_s=timeout_s)
    except FileNotFoundError as exc:
        raise BackendUnavailableError(provider, f"binary not found: {args[0]}") from exc
    except subprocess.TimeoutExpired as exc:
        raise BackendUnavailableError(
            provider,
            f"timed out after {timeout_s}s",
            error_code=ErrorCode.BACKEND_TIMEOUT,
        ) from exc
    if result.returncode != 0:
        raise BackendUnavailableError(
            provider,
            f"exited with code {result.returncode}: {result.stderr_tail()}",
        )
    return result
