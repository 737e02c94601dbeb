"""
Front-end experiment module list (``front-end/src/experiments.js``).

The file is generated JavaScript with one import per experiment web page
and a default-exported array of one-line descriptor objects::

    import labkitwebpage0f3c from 'labkitwebpage0f3c';
    export default [
        { fullName: "Stroop Task", shortName: "stroop", module: labkitwebpage0f3c, ... },
    ];

``ModuleList`` holds the file as structured parts (import bindings, array
entries, and any other lines kept verbatim) and renders it back whole.
Array entries must stay on one line each.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path

from labkit.core.errors import RegistryReadFailure, RegistryWriteFailure
from labkit.registries.atomic import write_text_atomic

EXPORT_OPEN = "export default ["
EXPORT_CLOSE = "];"

# import <binding> from '<binding>'; as written by render()
GENERATED_IMPORT = re.compile(r"import\s+(\w+)\s+from\s+['\"](\w+)['\"];?")


@dataclass(frozen=True)
class WebModuleEntry:
    """Descriptor of one experiment web page in the front-end list."""

    module: str
    full_name: str
    short_name: str
    logo: str = ""
    tagline: str = ""
    duration: str = ""

    def to_literal(self) -> str:
        fields = [
            ("fullName", json.dumps(self.full_name)),
            ("shortName", json.dumps(self.short_name)),
            ("module", self.module),
            ("logo", json.dumps(self.logo)),
            ("tagline", json.dumps(self.tagline)),
            ("duration", json.dumps(self.duration)),
        ]
        return "{ " + ", ".join(f"{key}: {value}" for key, value in fields) + " }"


@dataclass
class ModuleList:
    imports: list[str] = field(default_factory=list)
    preamble: list[str] = field(default_factory=list)
    entries: list[str] = field(default_factory=list)
    trailer: list[str] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "ModuleList":
        return cls()

    @classmethod
    def parse(cls, text: str) -> "ModuleList":
        modules = cls()
        state = "head"
        for line in text.splitlines():
            stripped = line.strip()
            if not stripped:
                continue
            if state == "head":
                generated = GENERATED_IMPORT.fullmatch(stripped)
                if generated and generated.group(1) == generated.group(2):
                    modules.imports.append(generated.group(1))
                elif stripped.startswith(EXPORT_OPEN):
                    state = "list"
                    inline = stripped[len(EXPORT_OPEN) :]
                    # single-line form: export default [];
                    if inline.endswith(EXPORT_CLOSE):
                        inline = inline[: -len(EXPORT_CLOSE)]
                        state = "tail"
                    if inline.strip():
                        raise ValueError("module list entries must be on separate lines")
                else:
                    modules.preamble.append(line)
            elif state == "list":
                if stripped.startswith("]"):
                    state = "tail"
                else:
                    modules.entries.append(stripped.rstrip(","))
            else:
                modules.trailer.append(line)
        if state == "list":
            raise ValueError("unterminated module list")
        return modules

    @property
    def module_names(self) -> list[str]:
        return list(self.imports)

    def add(self, entry: WebModuleEntry) -> None:
        self.imports.append(entry.module)
        self.entries.append(entry.to_literal())

    def render(self) -> str:
        lines = [f"import {name} from '{name}';" for name in self.imports]
        lines.extend(self.preamble)
        lines.append(EXPORT_OPEN)
        lines.extend(f"\t{entry}," for entry in self.entries)
        lines.append(EXPORT_CLOSE)
        lines.extend(self.trailer)
        return "\n".join(lines) + "\n"


def load_module_list(path: Path) -> ModuleList:
    try:
        return ModuleList.parse(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise RegistryReadFailure(
            f"Failed to read web page module list: {e}", {"path": str(path)}
        ) from e


def save_module_list(path: Path, modules: ModuleList) -> None:
    try:
        write_text_atomic(path, modules.render())
    except OSError as e:
        raise RegistryWriteFailure(
            f"Failed to include web pages in front end: {e}", {"path": str(path)}
        ) from e
