"""Dependency drift between the working tree and the previous commit."""

from __future__ import annotations

import json
import re
import tomllib
from pathlib import Path
from typing import Any, Callable, Dict, List, Tuple

from ..config import DependencyThresholds
from ..git.history import RevisionReader
from ..logging import get_logger
from ..models import CheckStatus, DependencyChange, DependencyResult
from ..process import CommandRunner
from .base import Check, CheckContext

ManifestParser = Callable[[str], Dict[str, str]]

_REQUIREMENT_LINE = re.compile(r"^([A-Za-z0-9._-]+)(?:\[[^\]]*\])?\s*(?:([=<>!~]+)\s*(.+))?")
_PEP508_NAME = re.compile(r"^\s*([A-Za-z0-9._-]+)(?:\[[^\]]*\])?\s*(.*)$")
_DIRECT_REFERENCE = re.compile(r"^([A-Za-z0-9._-]+)(?:\[[^\]]*\])?\s*@\s*\S+")
_VCS_PREFIXES = ("git+", "hg+", "svn+", "bzr+")
_GO_REQUIRE = re.compile(r"^(\S+)\s+(\S+)")

logger = get_logger("checks.dependencies")


def parse_package_json(text: str) -> Dict[str, str]:
    try:
        data = json.loads(text)
    except ValueError:
        return {}
    if not isinstance(data, dict):
        return {}
    deps: Dict[str, str] = {}
    for section in ("dependencies", "devDependencies"):
        block = data.get(section)
        if isinstance(block, dict):
            deps.update({str(name): str(version) for name, version in block.items()})
    return deps


def parse_requirements_txt(text: str) -> Dict[str, str]:
    deps: Dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.split("#", 1)[0].strip()
        if not line or line.startswith("-"):
            continue
        direct = _DIRECT_REFERENCE.match(line)
        if direct:
            deps[direct.group(1)] = "*"
            continue
        if "://" in line or line.startswith(_VCS_PREFIXES + (".", "/")):
            # URLs, VCS checkouts and local paths carry no reliable package name.
            continue
        match = _REQUIREMENT_LINE.match(line)
        if not match:
            continue
        name, _operator, version = match.groups()
        deps[name] = version.strip() if version else "*"
    return deps


def parse_go_mod(text: str) -> Dict[str, str]:
    deps: Dict[str, str] = {}
    in_block = False
    for raw_line in text.splitlines():
        line = raw_line.split("//", 1)[0].strip()
        if not line:
            continue
        if in_block:
            if line.startswith(")"):
                in_block = False
                continue
            _add_go_requirement(deps, line)
        elif line.startswith("require"):
            rest = line[len("require"):].strip()
            if rest.startswith("("):
                in_block = True
            else:
                _add_go_requirement(deps, rest)
    return deps


def _add_go_requirement(deps: Dict[str, str], line: str) -> None:
    match = _GO_REQUIRE.match(line)
    if match:
        deps[match.group(1)] = match.group(2)


def parse_cargo_toml(text: str) -> Dict[str, str]:
    data = _load_toml(text)
    block = data.get("dependencies")
    if not isinstance(block, dict):
        return {}
    deps: Dict[str, str] = {}
    for name, declared in block.items():
        if isinstance(declared, str):
            deps[name] = declared
        elif isinstance(declared, dict):
            deps[name] = str(declared.get("version", "*"))
    return deps


def parse_pyproject_toml(text: str) -> Dict[str, str]:
    data = _load_toml(text)
    deps: Dict[str, str] = {}

    project = data.get("project")
    if isinstance(project, dict):
        requirements: List[Any] = list(project.get("dependencies") or [])
        optional = project.get("optional-dependencies")
        if isinstance(optional, dict):
            for group in optional.values():
                requirements.extend(group or [])
        for requirement in requirements:
            if not isinstance(requirement, str):
                continue
            match = _PEP508_NAME.match(requirement)
            if match:
                deps[match.group(1)] = match.group(2).strip() or "*"

    tool = data.get("tool")
    poetry = tool.get("poetry") if isinstance(tool, dict) else None
    poetry_deps = poetry.get("dependencies") if isinstance(poetry, dict) else None
    if isinstance(poetry_deps, dict):
        for name, declared in poetry_deps.items():
            if name.lower() == "python":
                continue
            if isinstance(declared, dict):
                declared = declared.get("version", "*")
            deps[name] = str(declared)
    return deps


def _load_toml(text: str) -> Dict[str, Any]:
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError:
        return {}


MANIFEST_PARSERS: Dict[str, ManifestParser] = {
    "package.json": parse_package_json,
    "requirements.txt": parse_requirements_txt,
    "go.mod": parse_go_mod,
    "Cargo.toml": parse_cargo_toml,
    "pyproject.toml": parse_pyproject_toml,
}


def diff_manifests(
    manifest: str, current: Dict[str, str], previous: Dict[str, str]
) -> Tuple[List[DependencyChange], List[DependencyChange]]:
    """Return (new, removed) entries between two parsed manifests."""
    new = [
        DependencyChange(name=name, version=version, manifest=manifest)
        for name, version in current.items()
        if name not in previous
    ]
    removed = [
        DependencyChange(name=name, version=version, manifest=manifest)
        for name, version in previous.items()
        if name not in current
    ]
    return new, removed


class DependencyCheck(Check):
    """Reports dependencies added or removed since the previous commit.

    A manifest whose previous revision cannot be read (first commit, newly
    added file, not a git checkout) is skipped rather than treated as all-new.
    """

    key = "dependencies"
    name = "Dependencies"

    def __init__(
        self,
        runner: CommandRunner | None = None,
        parsers: Dict[str, ManifestParser] | None = None,
    ) -> None:
        self._reader = RevisionReader(runner)
        self._parsers = parsers if parsers is not None else MANIFEST_PARSERS

    def run(self, context: CheckContext) -> DependencyResult:
        new_deps: List[DependencyChange] = []
        removed_deps: List[DependencyChange] = []

        for manifest, parser in self._parsers.items():
            path = Path(context.repo_path) / manifest
            if not path.is_file():
                continue
            try:
                current_text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError):
                logger.debug("Could not read %s", path)
                continue

            previous_text = self._reader.read(
                context.repo_path, manifest, timeout=context.settings.tool_timeout
            )
            if previous_text is None:
                logger.debug("No previous revision of %s; skipping drift", manifest)
                continue

            new, removed = diff_manifests(manifest, parser(current_text), parser(previous_text))
            new_deps.extend(new)
            removed_deps.extend(removed)

        return classify_dependencies(new_deps, removed_deps, context.settings.dependencies)


def classify_dependencies(
    new_deps: List[DependencyChange],
    removed_deps: List[DependencyChange],
    thresholds: DependencyThresholds | None = None,
) -> DependencyResult:
    t = thresholds or DependencyThresholds()
    parts: List[str] = []
    if new_deps:
        parts.append(f"+{len(new_deps)} new")
    if removed_deps:
        parts.append(f"-{len(removed_deps)} removed")
    summary = ", ".join(parts) if parts else "No dependency changes"
    status = CheckStatus.WARN if len(new_deps) > t.warn_new else CheckStatus.PASS
    return DependencyResult(
        status=status,
        summary=summary,
        issues=tuple(new_deps) + tuple(removed_deps),
        new_deps=tuple(new_deps),
        removed_deps=tuple(removed_deps),
    )


__all__ = [
    "DependencyCheck",
    "MANIFEST_PARSERS",
    "classify_dependencies",
    "diff_manifests",
    "parse_cargo_toml",
    "parse_go_mod",
    "parse_package_json",
    "parse_pyproject_toml",
    "parse_requirements_txt",
]
