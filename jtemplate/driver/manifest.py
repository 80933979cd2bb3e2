"""Batch configuration (templates.toml) loading and validation.

    [templates]
    source = "src/main/templates"
    output = "build/generated"
    include = ["**/*.java"]
    ktypes = ["generic", "int", "long"]
    vtypes = ["generic", "int"]
    jobs = 4
"""
from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from jtemplate.internals.exceptions import ManifestError, SpecializationError
from jtemplate.specialize.options import Type

MANIFEST_NAME = "templates.toml"

ALL_TYPES = tuple(Type)


@dataclass
class TemplateManifest:
    source: Path
    output: Path
    include: list[str] = field(default_factory=lambda: ["**/*.java"])
    ktypes: tuple[Type, ...] = ALL_TYPES
    vtypes: tuple[Type, ...] = ALL_TYPES
    jobs: int | None = None

    def templates(self) -> list[Path]:
        """Template files under `source` matched by `include`, sorted."""
        found: set[Path] = set()
        for pattern in self.include:
            found.update(p for p in self.source.glob(pattern) if p.is_file())
        return sorted(found)


def load_manifest(path: Path | None = None) -> TemplateManifest:
    """Load and validate templates.toml (default: in the cwd)."""
    if path is None:
        path = Path.cwd() / MANIFEST_NAME
    elif path.is_dir():
        path = path / MANIFEST_NAME
    if not path.exists():
        raise ManifestError(path=path, reason="file not found")
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ManifestError(path=path, reason=str(e)) from None
    return _parse_manifest(data, path)


def load_manifest_from_string(text: str, base: Path | None = None) -> TemplateManifest:
    base = base or Path.cwd()
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ManifestError(path="<string>", reason=str(e)) from None
    return _parse_manifest(data, base / MANIFEST_NAME)


def _types(value, path: Path, key: str) -> tuple[Type, ...]:
    if value is None:
        return ALL_TYPES
    if not isinstance(value, list) or not value:
        raise ManifestError(path=path, reason=f"[templates] {key} must be a non-empty list")
    try:
        return tuple(dict.fromkeys(Type.parse(str(v)) for v in value))
    except SpecializationError as e:
        raise ManifestError(path=path, reason=str(e)) from None


def _parse_manifest(data: dict, path: Path) -> TemplateManifest:
    section = data.get("templates")
    if not isinstance(section, dict):
        raise ManifestError(path=path, reason="missing [templates] table")
    for key in ("source", "output"):
        if not isinstance(section.get(key), str) or not section[key]:
            raise ManifestError(path=path, reason=f"missing required field: [templates] {key}")

    include = section.get("include", ["**/*.java"])
    if isinstance(include, str):
        include = [include]
    if not isinstance(include, list) or not all(isinstance(p, str) for p in include):
        raise ManifestError(path=path, reason="[templates] include must be a list of globs")

    jobs = section.get("jobs")
    if jobs is not None and (not isinstance(jobs, int) or jobs < 1):
        raise ManifestError(path=path, reason="[templates] jobs must be a positive integer")

    root = path.parent
    return TemplateManifest(
        source=root / section["source"],
        output=root / section["output"],
        include=include,
        ktypes=_types(section.get("ktypes"), path, "ktypes"),
        vtypes=_types(section.get("vtypes"), path, "vtypes"),
        jobs=jobs,
    )
