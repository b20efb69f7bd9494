"""TOML config loading for noteg.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_FILENAME = "noteg.toml"


@dataclass
class PackageConfig:
    name: str = "untitled"
    version: str = "0.0.0"
    authors: list[str] = field(default_factory=list)


@dataclass
class CompileConfig:
    profile: str = "es2022"
    minify: bool = False
    source_map: bool = False
    strict: bool = True


@dataclass
class NotegConfig:
    package: PackageConfig = field(default_factory=PackageConfig)
    compile: CompileConfig = field(default_factory=CompileConfig)


def find_config(start_path: Path | None = None) -> Path:
    """Walk up directories to find noteg.toml. Raises FileNotFoundError."""
    path = (start_path or Path.cwd()).resolve()
    if path.is_file():
        path = path.parent
    while True:
        candidate = path / CONFIG_FILENAME
        if candidate.exists():
            return candidate
        parent = path.parent
        if parent == path:
            raise FileNotFoundError(f"No {CONFIG_FILENAME} found in any parent directory")
        path = parent


def load_config(path: Path) -> NotegConfig:
    """Parse a noteg.toml file into a NotegConfig."""
    with open(path, "rb") as f:
        data = tomllib.load(f)

    config = NotegConfig()

    if "package" in data:
        pkg = data["package"]
        config.package = PackageConfig(
            name=pkg.get("name", "untitled"),
            version=pkg.get("version", "0.0.0"),
            authors=pkg.get("authors", []),
        )

    if "compile" in data:
        cmp = data["compile"]
        config.compile = CompileConfig(
            profile=cmp.get("profile", "es2022"),
            minify=cmp.get("minify", False),
            source_map=cmp.get("source_map", False),
            strict=cmp.get("strict", True),
        )

    return config
