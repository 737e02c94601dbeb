"""Root test configuration."""

import asyncio
import json
import logging
from pathlib import Path

import pytest
import structlog
import yaml
from labkit.components.tools import ContainerTool, PackageTool, ToolInvocationError
from labkit.config import CoreLayout, Settings


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


class FakePackageTool(PackageTool):
    """npm stand-in: packs ``<name>-1.0.0.tgz`` from the current package.json."""

    def __init__(self) -> None:
        super().__init__("npm")
        self.built: list[Path] = []
        self.packed: list[tuple[Path, str]] = []
        self.installed: list[tuple[Path, list[Path]]] = []
        self.uninstalled: list[tuple[Path, str]] = []
        self.fail_build: set[Path] = set()
        self.fail_pack: set[Path] = set()
        self.fail_install: set[Path] = set()
        self.fail_uninstall: set[str] = set()

    async def build(self, cwd: Path) -> None:
        await asyncio.sleep(0)
        if cwd in self.fail_build:
            raise ToolInvocationError(["npm", "run", "build"], 1, "build exploded")
        self.built.append(cwd)

    async def pack(self, cwd: Path) -> str:
        await asyncio.sleep(0)
        if cwd in self.fail_pack:
            raise ToolInvocationError(["npm", "pack"], 1, "pack exploded")
        name = json.loads((cwd / "package.json").read_text())["name"]
        artifact = f"{name}-1.0.0.tgz"
        (cwd / artifact).write_bytes(b"tarball")
        self.packed.append((cwd, name))
        return artifact

    async def install(self, cwd: Path, artifacts) -> None:
        await asyncio.sleep(0)
        if cwd in self.fail_install:
            raise ToolInvocationError(["npm", "install"], 1, "install exploded")
        self.installed.append((cwd, list(artifacts)))

    def uninstall(self, cwd: Path, name: str) -> None:
        if name in self.fail_uninstall:
            raise ToolInvocationError(["npm", "uninstall", name, "--save"], 1, "uninstall exploded")
        self.uninstalled.append((cwd, name))


class FakeContainerTool(ContainerTool):
    """docker stand-in recording image builds."""

    def __init__(self) -> None:
        super().__init__("docker")
        self.images: list[tuple[Path, str]] = []
        self.fail_build: set[Path] = set()

    async def build_image(self, context_dir: Path, tag: str) -> None:
        await asyncio.sleep(0)
        if context_dir in self.fail_build:
            raise ToolInvocationError(["docker", "build", str(context_dir), "-t", tag], 1, "no")
        self.images.append((context_dir, tag))


def write_component(path: Path, name: str) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    (path / "package.json").write_text(
        json.dumps({"name": name, "version": "1.0.0", "main": "build/index.js"}, indent=4) + "\n"
    )
    return path


def make_experiment(root: Path, short_name: str, controllers: int = 1) -> Path:
    """Create an experiment directory with controllers, a web page and a worker."""
    exp_dir = root / short_name
    api_controllers = []
    for i in range(controllers):
        location = f"api controllers/{i}"
        write_component(exp_dir / location, f"{short_name}-api-{i}")
        api_controllers.append({"location": location, "mountPath": f"{short_name}{i}"})
    write_component(exp_dir / "web page", f"{short_name}-web")
    (exp_dir / "worker").mkdir(parents=True)
    (exp_dir / "worker" / "Dockerfile").write_text("FROM node:18\n")
    config = {
        "shortName": short_name,
        "experimentName": f"{short_name.title()} Experiment",
        "logo": f"{short_name}.png",
        "tagline": "Be a citizen scientist!",
        "duration": "5 minutes",
        "apiControllers": api_controllers,
        "webPage": {"location": "web page"},
        "worker": {
            "location": "worker",
            "service": {"environment": {"QUEUE": short_name}, "depends_on": ["message-queue"]},
        },
    }
    (exp_dir / "config.yaml").write_text(yaml.safe_dump(config, sort_keys=False))
    return exp_dir


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def core_dir(tmp_path):
    """A core application at its post-cleanup baseline plus hand-written services."""
    core = tmp_path / "core"
    (core / "api" / "src").mkdir(parents=True)
    (core / "api" / "tempPackages").mkdir()
    (core / "front-end" / "src").mkdir(parents=True)
    (core / "front-end" / "tempPackages").mkdir()
    (core / "api" / "src" / "controllers.json").write_text("[]")
    (core / "front-end" / "src" / "experiments.js").write_text("export default [\n];\n")
    (core / "docker-compose.dev.yml").write_text(
        yaml.safe_dump(
            {
                "version": "3",
                "services": {
                    "message-queue": {"image": "rabbitmq:3-management"},
                    "test_db": {"image": "postgres:11", "ports": ["5432:5432"]},
                },
            },
            sort_keys=False,
        )
    )
    return core


@pytest.fixture
def layout(core_dir, settings):
    return CoreLayout.from_settings(core_dir, settings)


@pytest.fixture
def experiments_dir(tmp_path):
    path = tmp_path / "experiments"
    path.mkdir()
    return path


@pytest.fixture
def package_tool():
    return FakePackageTool()


@pytest.fixture
def container_tool():
    return FakeContainerTool()


@pytest.fixture
def experiment_factory(experiments_dir):
    def factory(short_name: str, controllers: int = 1) -> Path:
        return make_experiment(experiments_dir, short_name, controllers)

    return factory


@pytest.fixture
def component_factory(tmp_path):
    def factory(name: str = "my-component") -> Path:
        return write_component(tmp_path / "components" / name, name)

    return factory
