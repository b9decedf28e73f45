"""
Pydantic schema for codeshaker configuration (codeshaker.yaml / [tool.codeshaker]).

Unknown or misspelled keys are rejected early instead of being silently ignored.
"""
from __future__ import annotations

from typing import Dict, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .side_effects import DEFAULT_KEEP_SIDE_EFFECT_SOURCES

__all__ = ["ConfigModel", "DeadImportModel", "ValidationError", "validate_config_data"]

FeatureValueModel = Union[bool, str, List[str]]


class DeadImportModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str
    source: str


class ConfigModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    version: str = "1.0"
    if_unknown_export: Literal["error", "ignore", "reexport-all", "skip-shaking"] = "skip-shaking"
    keep_side_effects: bool = False
    keep_side_effect_sources: List[str] = Field(
        default_factory=lambda: list(DEFAULT_KEEP_SIDE_EFFECT_SOURCES)
    )
    dead_imports: List[DeadImportModel] = Field(default_factory=list)
    features: Dict[str, FeatureValueModel] = Field(default_factory=dict)
    alias_imported_names: bool = True
    preval_export_name: str = "__preval"


def validate_config_data(data: dict) -> ConfigModel:
    """Validate raw configuration data.

    Raises:
        ValidationError: if a key is unknown or a value has the wrong type.
    """
    return ConfigModel.model_validate(data)
