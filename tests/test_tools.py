"""Tests for components/tools.py."""

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest
from labkit.components.tools import ContainerTool, PackageTool, ToolInvocationError, ToolRunner


def completed(args, returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args, returncode, stdout=stdout, stderr=stderr)


class TestToolRunner:
    """Tests for ToolRunner.run."""

    @patch("labkit.components.tools.subprocess.run")
    def test_success(self, mock_run):
        mock_run.return_value = completed(["npm", "pack"], stdout="x.tgz\n")

        result = ToolRunner(timeout=30).run(["npm", "pack"], Path("/tmp"))

        assert result.stdout == "x.tgz\n"
        assert mock_run.call_args.kwargs["cwd"] == Path("/tmp")
        assert mock_run.call_args.kwargs["timeout"] == 30

    @patch("labkit.components.tools.subprocess.run")
    def test_nonzero_exit(self, mock_run):
        mock_run.return_value = completed(["npm", "run", "build"], 2, stderr="missing script\n")

        with pytest.raises(ToolInvocationError) as exc_info:
            ToolRunner().run(["npm", "run", "build"], Path("."))

        assert exc_info.value.returncode == 2
        assert str(exc_info.value) == "`npm run build` exited with 2: missing script"

    @patch("labkit.components.tools.subprocess.run")
    def test_missing_binary(self, mock_run):
        mock_run.side_effect = FileNotFoundError("npm")

        with pytest.raises(ToolInvocationError, match="could not run"):
            ToolRunner().run(["npm", "pack"], Path("."))

    @patch("labkit.components.tools.subprocess.run")
    def test_timeout(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(["docker", "build"], 5)

        with pytest.raises(ToolInvocationError, match="timed out"):
            ToolRunner(timeout=5).run(["docker", "build"], Path("."))


class RecordingRunner(ToolRunner):
    def __init__(self, stdout=""):
        super().__init__()
        self.calls = []
        self.stdout = stdout

    def run(self, args, cwd):
        self.calls.append((list(args), cwd))
        return completed(args, stdout=self.stdout)


class TestTools:
    """Tests for the npm and docker command lines."""

    @pytest.mark.asyncio
    async def test_pack_returns_last_line(self):
        runner = RecordingRunner(stdout="npm notice\nlabkitwebpagea-1.0.0.tgz\n\n")

        artifact = await PackageTool("npm", runner).pack(Path("web"))

        assert artifact == "labkitwebpagea-1.0.0.tgz"
        assert runner.calls == [(["npm", "pack"], Path("web"))]

    @pytest.mark.asyncio
    async def test_pack_without_output(self):
        with pytest.raises(ToolInvocationError, match="no artifact"):
            await PackageTool("npm", RecordingRunner()).pack(Path("web"))

    @pytest.mark.asyncio
    async def test_install_and_build(self):
        runner = RecordingRunner()
        tool = PackageTool("npm", runner)

        await tool.install(Path("api"), [Path("api/tempPackages/a.tgz")])
        await tool.build(Path("api"))

        assert [args for args, _ in runner.calls] == [
            ["npm", "install", "api/tempPackages/a.tgz"],
            ["npm", "run", "build"],
        ]

    def test_uninstall_saves(self):
        runner = RecordingRunner()

        PackageTool("npm", runner).uninstall(Path("api"), "labkitcontrollera")

        assert runner.calls == [(["npm", "uninstall", "labkitcontrollera", "--save"], Path("api"))]

    @pytest.mark.asyncio
    async def test_build_image(self):
        runner = RecordingRunner()

        await ContainerTool("docker", runner).build_image(Path("worker"), "labkitworkera")

        assert runner.calls == [
            (["docker", "build", "worker", "-t", "labkitworkera"], Path("worker"))
        ]
