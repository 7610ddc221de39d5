"""
EnumsCache: registry of enum types and their constants.

Acts as the type loader for the completion engine. Enum constants come from
three sources, later ones overriding earlier ones:

1. The bundled table of common JDK / Spring Boot enums (data/builtin_enums.yml)
2. `enum` declarations found in the project's *.java sources
3. A project registry file, `.cfgpropsls/enums.yml`
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path

import yaml
from lsprotocol.types import MessageType

from cfgpropsls.completion.errors import TypeUnavailable
from cfgpropsls.utils.find_files import find_java_sources
from cfgpropsls.workspace.cache import CachedDataBase, CachedWorkspace, WorkspaceCache
from cfgpropsls.workspace.utils import uri_to_path

PROJECT_REGISTRY = Path(".cfgpropsls") / "enums.yml"

_COMMENT_OR_STRING = re.compile(
    r'//[^\n]*|/\*.*?\*/|"(?:\\.|[^"\\])*"|\'(?:\\.|[^\'\\])*\'',
    re.DOTALL,
)
_PACKAGE_PATTERN = re.compile(r"^\s*package\s+([\w.]+)\s*;", re.MULTILINE)
_TYPE_OR_BRACE = re.compile(r"\b(class|interface|enum|record)\s+(\w+)|[{}]")
_ANNOTATION = re.compile(r"@[\w.]+")
_IDENTIFIER = re.compile(r"^[A-Za-z_$][\w$]*")


@dataclass(frozen=True)
class EnumDefinition(CachedDataBase):
    """An enum type and its constants in declaration order."""

    constants: tuple[str, ...] = field(default_factory=tuple)


def _blank(match: re.Match) -> str:
    # Keep line breaks so line numbers stay valid
    return "".join("\n" if c == "\n" else " " for c in match.group())


def extract_enum_constants(body: str) -> list[str]:
    """
    Extract constant names from the text following an enum's opening brace.

    Stops at the first top-level ';' or at the enum's closing brace.
    Constructor arguments and constant bodies are skipped.
    """
    segments: list[str] = []
    current: list[str] = []
    depth = 0

    for char in body:
        if char in "({":
            depth += 1
        elif char in ")}":
            if depth == 0:
                break
            depth -= 1
        elif depth == 0:
            if char == ";":
                break
            if char == ",":
                segments.append("".join(current))
                current = []
            else:
                current.append(char)
    segments.append("".join(current))

    constants = []
    for segment in segments:
        segment = _ANNOTATION.sub(" ", segment).strip()
        match = _IDENTIFIER.match(segment)
        if match:
            constants.append(match.group())
    return constants


def parse_java_enums(content: str) -> list[tuple[list[str], int, list[str]]]:
    """
    Find enum declarations in Java source.

    Returns:
        List of (type name path, line number, constants); the type name path
        lists enclosing types outermost first, ending with the enum name.
    """
    content = _COMMENT_OR_STRING.sub(_blank, content)

    results = []
    stack: list[str | None] = []
    pending: tuple[str, str, int] | None = None

    for match in _TYPE_OR_BRACE.finditer(content):
        token = match.group()
        if token == "{":
            if pending is None:
                stack.append(None)
                continue

            kind, name, line = pending
            pending = None
            names = [n for n in stack if n is not None] + [name]
            stack.append(name)
            if kind == "enum":
                results.append((names, line, extract_enum_constants(content[match.end():])))
        elif token == "}":
            if stack:
                stack.pop()
        else:
            line = content.count("\n", 0, match.start()) + 1
            pending = (match.group(1), match.group(2), line)

    return results


class EnumsCache(CachedWorkspace):
    """Registry of enum types, queried as the engine's type loader."""

    def __init__(self, workspace_cache: WorkspaceCache) -> None:
        super().__init__(workspace_cache)
        self._builtin: dict[str, EnumDefinition] = {}
        self._scanned: dict[str, EnumDefinition] = {}
        self._registry: dict[str, EnumDefinition] = {}

    async def scan(self):
        self._builtin = self._load_builtin()
        self._registry = self._load_registry(self.project_root / PROJECT_REGISTRY)
        self._scanned.clear()
        for java_file in find_java_sources(self.project_root):
            self.parse_java_file(java_file)

    def _load_builtin(self) -> dict[str, EnumDefinition]:
        text = (
            resources.files("cfgpropsls.workspace")
            .joinpath("data", "builtin_enums.yml")
            .read_text(encoding="utf-8")
        )
        return self._definitions_from_mapping(yaml.safe_load(text) or {}, None)

    def _load_registry(self, registry_file: Path) -> dict[str, EnumDefinition]:
        if not registry_file.is_file():
            return {}

        try:
            with open(registry_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ValueError("registry must map type names to constant lists")
            return self._definitions_from_mapping(data, registry_file)

        except (OSError, ValueError, yaml.YAMLError) as e:
            self.log(f"Error loading enum registry {registry_file}: {e}", MessageType.Warning)
            return {}

    @staticmethod
    def _definitions_from_mapping(
        data: dict, file_path: Path | None
    ) -> dict[str, EnumDefinition]:
        definitions = {}
        for type_name, constants in data.items():
            if not isinstance(constants, list):
                continue
            definitions[str(type_name)] = EnumDefinition(
                id=str(type_name),
                description=str(type_name).rsplit(".", 1)[-1],
                file_path=file_path,
                line_number=0,
                constants=tuple(str(c) for c in constants),
            )
        return definitions

    def parse_java_file(self, file_path: Path):
        """Parse a single Java source for enum declarations."""
        try:
            with open(file_path, "r", encoding="utf-8", errors="ignore") as f:
                content = f.read()
        except OSError as e:
            self.log(f"Error reading Java file {file_path}: {e}", MessageType.Warning)
            return

        package_match = _PACKAGE_PATTERN.search(content)
        package = package_match.group(1) if package_match else ""
        prefix = f"{package}." if package else ""

        for names, line, constants in parse_java_enums(content):
            # Metadata uses '$' for nested types, source code uses '.'
            for type_name in {
                prefix + ".".join(names),
                prefix + "$".join(names),
            }:
                self._scanned[type_name] = EnumDefinition(
                    id=type_name,
                    description=names[-1],
                    file_path=file_path,
                    line_number=line,
                    constants=tuple(constants),
                )

    # ===== Type loader =====

    def load_enum_constants(self, type_name: str) -> list[str]:
        definition = self.get(type_name)
        if definition is None:
            raise TypeUnavailable(type_name)
        return list(definition.constants)

    # ===== Public API =====

    def get(self, id: str) -> EnumDefinition | None:
        return self._registry.get(id) or self._scanned.get(id) or self._builtin.get(id)

    def get_all(self) -> dict[str, EnumDefinition]:
        return {**self._builtin, **self._scanned, **self._registry}

    def search(self, query: str, limit: int = 50) -> list[EnumDefinition]:
        query_lower = query.lower()
        results = [
            definition for type_name, definition in self.get_all().items()
            if query_lower in type_name.lower()
        ]
        results.sort(key=lambda d: (not d.description.lower().startswith(query_lower), d.id))
        return results[:limit]

    def invalidate_file(self, file_path: Path):
        if file_path.suffix == ".java":
            self._scanned = {
                name: definition for name, definition in self._scanned.items()
                if definition.file_path != file_path
            }
            if file_path.exists():
                self.parse_java_file(file_path)
        elif file_path == self.project_root / PROJECT_REGISTRY:
            self._registry = self._load_registry(file_path)

    def register_text_sync_hooks(self) -> None:
        if not self.server or not getattr(self.server, "text_sync_manager", None):
            return
        self.server.text_sync_manager.add_on_save_hook(
            self._on_file_saved, suffixes=(".java", PROJECT_REGISTRY.name)
        )

    async def _on_file_saved(self, params):
        file_path = uri_to_path(params.text_document.uri)
        if file_path is not None:
            self.invalidate_file(file_path)
