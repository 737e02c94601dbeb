"""Collision-free names for packaged components."""

from __future__ import annotations

import uuid
from typing import Mapping

from labkit.plugins.descriptor import ComponentRole

DEFAULT_PREFIXES: dict[ComponentRole, str] = {
    ComponentRole.CONTROLLER: "labkitcontroller",
    ComponentRole.WEBPAGE: "labkitwebpage",
    ComponentRole.WORKER: "labkitworker",
}


class UniqueNamer:
    """Generates names that are unique within one prep run.

    Names are ``prefix + uuid4().hex``: lowercase alphanumerics only, so the
    same name is a valid npm package name, JS import binding and image tag.
    """

    def __init__(self, prefixes: Mapping[ComponentRole, str] | None = None) -> None:
        self._prefixes = dict(DEFAULT_PREFIXES)
        if prefixes:
            self._prefixes.update(prefixes)
        self._issued: set[str] = set()

    def generate(self, prefix: str) -> str:
        name = f"{prefix}{uuid.uuid4().hex}"
        while name in self._issued:
            name = f"{prefix}{uuid.uuid4().hex}"
        self._issued.add(name)
        return name

    def for_role(self, role: ComponentRole) -> str:
        return self.generate(self._prefixes[role])

    @property
    def issued(self) -> frozenset[str]:
        return frozenset(self._issued)
