"""Result types for experiment preparation."""

from dataclasses import dataclass, field
from typing import Dict, List

from labkit.registries.controllers import ControllerEntry
from labkit.registries.modules import WebModuleEntry
from labkit.registries.services import ServiceRegistryEntry


@dataclass
class ExperimentResult:
    """Everything one experiment contributes to the core."""

    short_name: str
    controllers: List[ControllerEntry]
    web_module: WebModuleEntry
    service: ServiceRegistryEntry


@dataclass
class RunResult:
    """Aggregates experiment results during a run.

    Experiments finish in any order; each is stored under its discovery
    index so the flattened collections follow discovery order.
    """

    experiments: Dict[int, ExperimentResult] = field(default_factory=dict)
    duration_seconds: float = 0.0

    def absorb(self, index: int, experiment: ExperimentResult) -> None:
        """Record a finished experiment at its discovery position."""
        self.experiments[index] = experiment

    def _ordered(self) -> List[ExperimentResult]:
        return [self.experiments[i] for i in sorted(self.experiments)]

    @property
    def controllers(self) -> List[ControllerEntry]:
        return [c for exp in self._ordered() for c in exp.controllers]

    @property
    def web_modules(self) -> List[WebModuleEntry]:
        return [exp.web_module for exp in self._ordered()]

    @property
    def services(self) -> List[ServiceRegistryEntry]:
        return [exp.service for exp in self._ordered()]

    @property
    def experiment_names(self) -> List[str]:
        return [exp.short_name for exp in self._ordered()]

    @property
    def total_components(self) -> int:
        """Controllers, web pages and workers linked by this run."""
        return len(self.controllers) + len(self.web_modules) + len(self.services)
