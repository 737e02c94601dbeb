"""
Tests for orchestration/engine.py.

End-to-end prep runs against a temporary core with fake npm and docker.
"""

import json

import pytest
import yaml
from labkit.config import Settings
from labkit.core.errors import BuildFailure, DescriptorLoadFailure, RebuildFailure
from labkit.orchestration.engine import Orchestrator, _prepare, prepare
from labkit.plugins.descriptor import ComponentRole
from labkit.registries.modules import load_module_list
from labkit.registries.services import ServiceRegistry


@pytest.fixture
def orchestrator(layout, package_tool, container_tool):
    return Orchestrator(layout, package_tool, container_tool)


def managed_services(layout):
    return ServiceRegistry.load(layout.service_registry).managed_names()


class TestOrchestratorRun:
    """Tests for Orchestrator.run."""

    @pytest.mark.asyncio
    async def test_two_experiments(
        self, orchestrator, experiment_factory, experiments_dir, layout, package_tool
    ):
        experiment_factory("stroop")
        experiment_factory("vocab")

        result = await _prepare(orchestrator, experiments_dir)

        assert result.experiment_names == ["stroop", "vocab"]
        assert result.total_components == 6
        controllers = json.loads(layout.controllers_manifest.read_text())
        assert [c["mountPath"] for c in controllers] == ["stroop0", "vocab0"]
        assert [c["name"] for c in controllers] == [c.name for c in result.controllers]

        modules = load_module_list(layout.module_list)
        assert modules.module_names == [m.module for m in result.web_modules]
        assert len(modules.entries) == 2

        assert managed_services(layout) == [s.name for s in result.services]
        compose = yaml.safe_load(layout.service_registry.read_text())
        assert {"message-queue", "test_db"} <= set(compose["services"])

        # both core components were rebuilt once, after installing staged files
        assert package_tool.built[-2:] in (
            [layout.api_dir, layout.frontend_dir],
            [layout.frontend_dir, layout.api_dir],
        )
        installed = {cwd: [p.name for p in artifacts] for cwd, artifacts in package_tool.installed}
        assert sorted(installed[layout.api_dir]) == sorted(
            f"{c.name}-1.0.0.tgz" for c in result.controllers
        )
        assert len(installed[layout.frontend_dir]) == 2

    @pytest.mark.asyncio
    async def test_rerun_replaces_previous_link(
        self, layout, package_tool, container_tool, experiment_factory, experiments_dir
    ):
        experiment_factory("stroop")
        first = await _prepare(Orchestrator(layout, package_tool, container_tool), experiments_dir)

        second = await _prepare(
            Orchestrator(layout, package_tool, container_tool), experiments_dir
        )

        assert managed_services(layout) == [second.services[0].name]
        controllers = json.loads(layout.controllers_manifest.read_text())
        assert [c["name"] for c in controllers] == [second.controllers[0].name]
        uninstalled = [name for _, name in package_tool.uninstalled]
        assert first.controllers[0].name in uninstalled
        assert first.web_modules[0].module in uninstalled
        assert len(list(layout.api_staging.iterdir())) == 1

    @pytest.mark.asyncio
    async def test_web_page_failure_aborts_before_commit(
        self, orchestrator, experiment_factory, experiments_dir, layout, package_tool
    ):
        experiment_factory("stroop")
        vocab = experiment_factory("vocab")
        package_tool.fail_build.add(vocab / "web page")

        with pytest.raises(BuildFailure) as exc_info:
            await _prepare(orchestrator, experiments_dir)

        assert exc_info.value.details["experiment"] == "vocab"
        assert "build exploded" in str(exc_info.value)
        assert json.loads(layout.controllers_manifest.read_text()) == []
        assert load_module_list(layout.module_list).module_names == []
        assert managed_services(layout) == []
        assert package_tool.installed == []

    @pytest.mark.asyncio
    async def test_no_experiments(self, orchestrator, experiments_dir, layout, package_tool):
        result = await _prepare(orchestrator, experiments_dir)

        assert result.experiments == {}
        assert json.loads(layout.controllers_manifest.read_text()) == []
        assert managed_services(layout) == []
        assert package_tool.installed == []
        assert sorted(map(str, package_tool.built)) == sorted(
            [str(layout.api_dir), str(layout.frontend_dir)]
        )

    @pytest.mark.asyncio
    async def test_bad_descriptor_aborts(self, orchestrator, experiments_dir, package_tool):
        (experiments_dir / "broken").mkdir()

        with pytest.raises(DescriptorLoadFailure):
            await _prepare(orchestrator, experiments_dir)

        assert package_tool.packed == []

    @pytest.mark.asyncio
    async def test_rebuild_failure(
        self, orchestrator, experiment_factory, experiments_dir, layout, package_tool
    ):
        experiment_factory("stroop")
        package_tool.fail_install.add(layout.frontend_dir)

        with pytest.raises(RebuildFailure) as exc_info:
            await _prepare(orchestrator, experiments_dir)

        assert exc_info.value.details["component"] == str(layout.frontend_dir)
        # registries were already committed
        assert len(json.loads(layout.controllers_manifest.read_text())) == 1


class TestPrepare:
    """Tests for the synchronous prepare entry point."""

    def test_prepare_builds_from_settings(self, monkeypatch, settings, core_dir, experiments_dir):
        calls = []

        async def fake_run(self, plugins_root):
            calls.append((self.layout.core_dir, plugins_root))
            return "result"

        monkeypatch.setattr(Orchestrator, "run", fake_run)

        assert prepare(experiments_dir, core_dir, settings) == "result"
        assert calls == [(core_dir, experiments_dir)]

    def test_from_settings_applies_prefixes(self, core_dir):
        settings = Settings(_env_file=None, worker_prefix="pushkinworker", package_tool="pnpm")

        orchestrator = Orchestrator.from_settings(core_dir, settings)

        assert orchestrator.package_tool.binary == "pnpm"
        assert orchestrator.layout.api_dir == core_dir / "api"
        assert orchestrator.namer.for_role(ComponentRole.WORKER).startswith("pushkinworker")
        assert orchestrator.namer.for_role(ComponentRole.WEBPAGE).startswith("labkitwebpage")
