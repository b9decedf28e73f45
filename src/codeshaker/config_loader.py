"""
Configuration loader - YAML files or [tool.codeshaker] in pyproject.toml
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

try:  # py3.11+
    import tomllib as tomli
except ImportError:
    import tomli

from .config_schema import validate_config_data
from .features import DEFAULT_FEATURES, FeatureValue
from .side_effects import DEFAULT_KEEP_SIDE_EFFECT_SOURCES

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = [
    "codeshaker.yaml",
    "codeshaker.yml",
    ".codeshaker.yaml",
    ".codeshaker.yml",
    "pyproject.toml",  # only with [tool.codeshaker]
]


@dataclass(frozen=True)
class DeadImport:
    """An import known to be unused at evaluation time."""
    name: str
    source: str


@dataclass
class ShakerConfig:
    """Shaker options"""
    # what to do when a requested export does not exist
    if_unknown_export: str = "skip-shaking"
    keep_side_effects: bool = False
    # side-effect imports matching these globs are never removed
    keep_side_effect_sources: List[str] = field(
        default_factory=lambda: list(DEFAULT_KEEP_SIDE_EFFECT_SOURCES)
    )
    dead_imports: List[DeadImport] = field(default_factory=list)
    features: Dict[str, FeatureValue] = field(default_factory=lambda: dict(DEFAULT_FEATURES))
    # an exported identifier named like an imported name counts as alive
    alias_imported_names: bool = True
    preval_export_name: str = "__preval"


def load_config(config_path: Optional[Union[str, Path]] = None, cwd: Optional[Path] = None) -> ShakerConfig:
    """
    Load the configuration.

    Args:
        config_path: explicit file; when None the working directory is searched
        cwd: directory to search instead of the current one

    Returns:
        ShakerConfig: the loaded configuration, or defaults when nothing is found
    """
    if config_path:
        return _load_config_file(Path(config_path))

    found = find_config_file(cwd)
    if found:
        logger.info("using configuration file %s", found)
        return _load_config_file(found)

    logger.debug("no configuration file found, using defaults")
    return ShakerConfig()


def find_config_file(cwd: Optional[Path] = None) -> Optional[Path]:
    """First configuration file in priority order, or None."""
    base = Path(cwd) if cwd else Path(".")
    for name in CONFIG_FILENAMES:
        candidate = base / name
        if not candidate.exists():
            continue
        if candidate.name == "pyproject.toml":
            if _has_codeshaker_config(candidate):
                return candidate
            continue
        return candidate
    return None


def _load_config_file(config_path: Path) -> ShakerConfig:
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    suffix = config_path.suffix.lower()
    if suffix in [".yaml", ".yml"]:
        return _load_yaml_config(config_path)
    elif suffix == ".toml":
        return _load_toml_config(config_path)
    else:
        raise ValueError(f"Unsupported configuration format: {suffix}")


def _load_yaml_config(config_path: Path) -> ShakerConfig:
    with config_path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not data:
        return ShakerConfig()

    return _parse_config_data(data)


def _load_toml_config(config_path: Path) -> ShakerConfig:
    with config_path.open("rb") as f:
        data = tomli.load(f)

    if "tool" in data and "codeshaker" in data["tool"]:
        config_data = data["tool"]["codeshaker"]
    else:
        config_data = data

    return _parse_config_data(config_data)


def _has_codeshaker_config(pyproject_path: Path) -> bool:
    try:
        with pyproject_path.open("rb") as f:
            data = tomli.load(f)
    except (OSError, tomli.TOMLDecodeError):
        return False
    return "tool" in data and "codeshaker" in data["tool"]


def _parse_config_data(data: Dict[str, Any]) -> ShakerConfig:
    """Validate and convert raw data; unknown keys raise pydantic.ValidationError."""
    model = validate_config_data(data)

    features: Dict[str, FeatureValue] = dict(DEFAULT_FEATURES)
    features.update(model.features)

    return ShakerConfig(
        if_unknown_export=model.if_unknown_export,
        keep_side_effects=model.keep_side_effects,
        keep_side_effect_sources=list(model.keep_side_effect_sources),
        dead_imports=[DeadImport(name=d.name, source=d.source) for d in model.dead_imports],
        features=features,
        alias_imported_names=model.alias_imported_names,
        preval_export_name=model.preval_export_name,
    )


def create_example_config() -> str:
    """Contents of an example configuration file."""
    return """# codeshaker configuration
version: "1.0"

# What to do when a requested export is not found in the module:
#   error         - fail with the list of requested exports
#   ignore        - shake with whatever matched
#   reexport-all  - keep every `export * from ...`
#   skip-shaking  - leave the module untouched (default)
if_unknown_export: "skip-shaking"

# Keep every side-effect-only import (import "x"; require("x");)
keep_side_effects: false

# Side-effect imports matching these globs are always kept
keep_side_effect_sources:
  - "*.css"
  - "*.scss"
  - "*.sass"
  - "*.less"
  - "*.styl"

# Imports known to be unused at evaluation time
dead_imports: []
#  - name: "default"
#    source: "react-dom"

# Feature switches: true/false or glob(s) matched against the filename,
# "!pattern" switches the feature off for matching files
features:
  dangerous_code_remover: true
  # dangerous_code_remover: ["**/*", "!**/node_modules/**"]

# An exported identifier named like an imported name is kept alive
alias_imported_names: true

# Name of the compile-time metadata export
preval_export_name: "__preval"
"""


def save_example_config(output_path: Optional[Path] = None, force: bool = False) -> Path:
    """Write the example configuration; refuses to overwrite unless ``force``."""
    if output_path is None:
        output_path = Path("codeshaker.yaml")
    output_path = Path(output_path)
    if output_path.exists() and not force:
        raise FileExistsError(f"{output_path} already exists")

    with output_path.open("w", encoding="utf-8") as f:
        f.write(create_example_config())

    return output_path
