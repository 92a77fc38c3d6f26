"""
Pydantic models for validating build configuration files.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..engine.errors import TagsmithError

DEFAULT_COMPONENTS_DIR = Path("components")
DEFAULT_CONFIG_FILENAME = "tagsmith.toml"


class ConfigError(TagsmithError):
    """Raised when configuration files cannot be loaded or validated."""


def _normalize_suffixes(values: List[str]) -> List[str]:
    normalized = []
    for value in values:
        suffix = value.strip().lower()
        if not suffix:
            continue
        normalized.append(suffix if suffix.startswith(".") else f".{suffix}")
    return normalized


class BuildConfig(BaseModel):
    """
    Everything one build needs to know.

    Attributes:
        source: Directory tree holding the input documents.
        output: Output root; defaults to ``<source>_processed``.
        components: Root of the component templates.
        depth: Maximum directory depth of processed documents (root = 0).
        names: Only process documents whose stem is listed.
        extensions: Suffixes of documents to expand.
        component_extensions: Suffixes of component templates.
        variables: Global ``{{name}}`` values available to every document.
        trace_markers: Wrap fragments in component trace comments.
        workers: Worker threads; defaults to the CPU count.
        host: Bind address for ``--serve``.
        port: Port for ``--serve``.
    """
    source: Optional[Path] = None
    output: Optional[Path] = None
    components: Path = DEFAULT_COMPONENTS_DIR
    depth: Optional[int] = Field(default=None, ge=0)
    names: Optional[List[str]] = None
    extensions: List[str] = Field(default_factory=lambda: [".html"])
    component_extensions: List[str] = Field(default_factory=lambda: [".html"])
    variables: Dict[str, Union[str, List[str]]] = Field(default_factory=dict)
    trace_markers: bool = True
    workers: Optional[int] = Field(default=None, ge=1)
    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=0, le=65535)

    model_config = {
        "extra": "forbid",
        "populate_by_name": True,
    }

    @field_validator("extensions", "component_extensions")
    @classmethod
    def _validate_suffixes(cls, values: List[str]) -> List[str]:
        normalized = _normalize_suffixes(values)
        if not normalized:
            raise ValueError("at least one file suffix is required")
        return normalized

    @field_validator("names")
    @classmethod
    def _validate_names(cls, values: Optional[List[str]]) -> Optional[List[str]]:
        if values is None:
            return None
        cleaned = [value.strip() for value in values if value.strip()]
        return cleaned or None

    def source_dir(self) -> Path:
        if self.source is None:
            raise ConfigError("No source directory configured.")
        return Path(self.source).expanduser().resolve()

    def output_dir(self) -> Path:
        if self.output is not None:
            return Path(self.output).expanduser().resolve()
        source = self.source_dir()
        return Path.cwd() / f"{source.name}_processed"

    def components_dir(self) -> Path:
        return Path(self.components).expanduser().resolve()


def load_config(path: Path | str) -> BuildConfig:
    """
    Load and validate a TOML config file into a BuildConfig instance.

    Relative paths in the file are resolved against the file's directory.

    Raises:
        ConfigError: If the file is missing, unreadable, or invalid.
    """
    config_path = Path(path).expanduser().resolve()
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with config_path.open("rb") as handle:
            raw_data: Dict[str, Any] = tomllib.load(handle)
    except OSError as exc:
        raise ConfigError(f"Unable to read configuration file: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in configuration file: {exc}") from exc

    for key in ("source", "output", "components"):
        value = raw_data.get(key)
        if isinstance(value, str) and not Path(value).expanduser().is_absolute():
            raw_data[key] = str(config_path.parent / value)

    try:
        return BuildConfig.model_validate(raw_data)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc


def find_default_config(directory: Path | None = None) -> Optional[Path]:
    """Return ``tagsmith.toml`` in ``directory`` (default: cwd) if present."""
    candidate = (directory or Path.cwd()) / DEFAULT_CONFIG_FILENAME
    return candidate if candidate.is_file() else None
