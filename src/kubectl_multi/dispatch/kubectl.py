"""kubectl subprocess runner.

Operations that are not implemented natively (apply, delete, describe,
logs, rollout, run) are delegated to the kubectl binary, with the cluster's
context injected as an argument and the kubeconfig path injected via the
environment.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Awaitable, Callable

from kubectl_multi.utils.errors import KubectlError

logger = logging.getLogger(__name__)

LineHandler = Callable[[str], Awaitable[None] | None]


class KubectlRunner:
    """Runs kubectl against one context at a time.

    Usage:
        runner = KubectlRunner(kubeconfig_path)
        output = runner.run(["get", "pods"], context="cluster1")
    """

    def __init__(
        self,
        kubeconfig_path: str | Path | None = None,
        binary: str = "kubectl",
    ) -> None:
        self._kubeconfig_path = str(kubeconfig_path) if kubeconfig_path else None
        self._binary = binary

    @property
    def binary(self) -> str:
        return self._binary

    def is_available(self) -> bool:
        return shutil.which(self._binary) is not None

    def build_command(self, args: list[str], context: str | None) -> list[str]:
        command = [self._binary, *args]
        if context:
            command.extend(["--context", context])
        return command

    def build_env(self) -> dict[str, str]:
        env = dict(os.environ)
        if self._kubeconfig_path:
            env["KUBECONFIG"] = self._kubeconfig_path
        return env

    def run(
        self,
        args: list[str],
        context: str | None = None,
        timeout: float | None = None,
    ) -> str:
        """Run kubectl and return its standard output.

        Raises:
            KubectlError: On non-zero exit; check not_found for missing resources.
            subprocess.TimeoutExpired: If the deadline passed.
        """
        command = self.build_command(args, context)
        logger.debug(f"Running: {' '.join(command)}")
        completed = subprocess.run(
            command,
            capture_output=True,
            text=True,
            env=self.build_env(),
            timeout=timeout,
            check=False,
        )
        return self._check(completed.returncode, completed.stdout, completed.stderr)

    async def run_async(self, args: list[str], context: str | None = None) -> str:
        """Run kubectl without blocking the event loop.

        Cancelling the awaiting task terminates the child process.
        """
        command = self.build_command(args, context)
        logger.debug(f"Running: {' '.join(command)}")
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=self.build_env(),
        )
        try:
            stdout, stderr = await process.communicate()
        except asyncio.CancelledError:
            await _terminate(process)
            raise
        return self._check(
            process.returncode,
            stdout.decode(errors="replace"),
            stderr.decode(errors="replace"),
        )

    async def stream(
        self,
        args: list[str],
        context: str | None,
        on_line: LineHandler,
    ) -> int:
        """Run kubectl and hand every stdout and stderr line to on_line.

        Returns once both pipes are drained and the process has exited.
        Cancelling the awaiting task terminates the child process.

        Returns:
            0, the exit status of a clean run.

        Raises:
            KubectlError: If kubectl exited non-zero. Its output holds the
                stderr lines, which were also passed to on_line.
        """
        command = self.build_command(args, context)
        logger.debug(f"Streaming: {' '.join(command)}")
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=self.build_env(),
        )
        stderr_lines: list[str] = []

        def on_stderr(line: str) -> Awaitable[None] | None:
            stderr_lines.append(line)
            return on_line(line)

        try:
            await asyncio.gather(
                _pump(process.stdout, on_line),
                _pump(process.stderr, on_stderr),
            )
            returncode = await process.wait()
        except asyncio.CancelledError:
            await _terminate(process)
            raise
        if returncode != 0:
            raise KubectlError(returncode, "\n".join(stderr_lines))
        return returncode

    def _check(self, returncode: int | None, stdout: str, stderr: str) -> str:
        if returncode != 0:
            raise KubectlError(returncode, stdout + stderr)
        return stdout


async def _pump(reader: asyncio.StreamReader | None, on_line: LineHandler) -> None:
    if reader is None:
        return
    while True:
        raw = await reader.readline()
        if not raw:
            break
        result = on_line(raw.decode(errors="replace").rstrip("\r\n"))
        if asyncio.iscoroutine(result):
            await result


async def _terminate(process: asyncio.subprocess.Process) -> None:
    """Terminate a child process, killing it if it ignores SIGTERM."""
    if process.returncode is not None:
        return
    try:
        process.terminate()
        await asyncio.wait_for(process.wait(), timeout=5)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
    except ProcessLookupError:
        pass
