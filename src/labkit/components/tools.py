"""
Wrappers around the external package tool (npm) and container tool (docker).

Every invocation is a blocking ``subprocess.run``; async callers go through
``asyncio.to_thread`` so the event loop keeps scheduling other components
while a build is running.
"""

from __future__ import annotations

import asyncio
import subprocess
from pathlib import Path
from typing import Sequence

import structlog

logger = structlog.get_logger()


class ToolInvocationError(RuntimeError):
    """An external tool exited nonzero, timed out, or could not be started."""

    def __init__(self, command: Sequence[str], returncode: int | None, output: str = "") -> None:
        self.command = list(command)
        self.returncode = returncode
        self.output = output.strip()
        status = "could not run" if returncode is None else f"exited with {returncode}"
        message = f"`{' '.join(self.command)}` {status}"
        if self.output:
            message = f"{message}: {self.output}"
        super().__init__(message)


class ToolRunner:
    """Runs external commands with captured output."""

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout

    def run(self, args: Sequence[str], cwd: Path) -> subprocess.CompletedProcess:
        logger.debug("tool_started", command=" ".join(args), cwd=str(cwd))
        try:
            result = subprocess.run(
                list(args),
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ToolInvocationError(args, None, f"timed out after {self.timeout}s") from e
        except OSError as e:
            raise ToolInvocationError(args, None, str(e)) from e

        if result.returncode != 0:
            raise ToolInvocationError(args, result.returncode, result.stderr or result.stdout)
        return result

    async def run_async(self, args: Sequence[str], cwd: Path) -> subprocess.CompletedProcess:
        return await asyncio.to_thread(self.run, args, cwd)


class PackageTool:
    """npm-compatible package tool: build, pack, install, uninstall."""

    def __init__(self, binary: str = "npm", runner: ToolRunner | None = None) -> None:
        self.binary = binary
        self.runner = runner or ToolRunner()

    async def build(self, cwd: Path) -> None:
        await self.runner.run_async([self.binary, "run", "build"], cwd)

    async def pack(self, cwd: Path) -> str:
        """Pack ``cwd`` and return the produced artifact's file name."""
        result = await self.runner.run_async([self.binary, "pack"], cwd)
        lines = [line.strip() for line in result.stdout.splitlines() if line.strip()]
        if not lines:
            raise ToolInvocationError([self.binary, "pack"], 0, "no artifact name reported")
        return lines[-1]

    async def install(self, cwd: Path, artifacts: Sequence[Path]) -> None:
        await self.runner.run_async([self.binary, "install", *map(str, artifacts)], cwd)

    def uninstall(self, cwd: Path, name: str) -> None:
        self.runner.run([self.binary, "uninstall", name, "--save"], cwd)


class ContainerTool:
    """docker-compatible image builder."""

    def __init__(self, binary: str = "docker", runner: ToolRunner | None = None) -> None:
        self.binary = binary
        self.runner = runner or ToolRunner()

    async def build_image(self, context_dir: Path, tag: str) -> None:
        await self.runner.run_async([self.binary, "build", str(context_dir), "-t", tag], context_dir)
