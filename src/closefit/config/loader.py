"""
Configuration loading utilities.

Supports environment variable interpolation and config inheritance.
Minimal configs only need: data.input_path
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml

from closefit.config.settings import PipelineConfig


# ${NAME} or ${NAME:fallback}; an unset NAME without fallback expands to ""
ENV_REFERENCE = re.compile(r"\$\{(?P<name>[^}:]+)(?::(?P<fallback>[^}]*))?\}")


def _expand_env(text: str) -> str:
    """Replace ${NAME} references in one YAML string, e.g. the input path."""
    return ENV_REFERENCE.sub(
        lambda ref: os.environ.get(ref["name"], ref["fallback"] or ""), text
    )


def _expand_env_tree(node: Any) -> Any:
    """Apply _expand_env to every string inside parsed YAML."""
    if isinstance(node, dict):
        return {key: _expand_env_tree(value) for key, value in node.items()}
    if isinstance(node, list):
        return [_expand_env_tree(item) for item in node]
    return _expand_env(node) if isinstance(node, str) else node


def _merge_sections(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Overlay a run config on a shared base config.

    Nested sections such as output or mlflow merge key by key; any
    other value in the override replaces the base value outright.
    """
    merged = dict(base)
    for key, value in override.items():
        section = merged.get(key)
        if isinstance(section, dict) and isinstance(value, dict):
            value = _merge_sections(section, value)
        merged[key] = value
    return merged


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML file and process environment variables."""
    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return _expand_env_tree(data) if data else {}


def build_config(data: dict[str, Any]) -> PipelineConfig:
    """
    Build a validated PipelineConfig from a plain mapping.

    Args:
        data: Nested mapping with the PipelineConfig sections.

    Returns:
        Fully validated PipelineConfig instance.

    Raises:
        ValueError: If required fields are missing or invalid.
    """
    input_path = data.get("data", {}).get("input_path")
    if not input_path:
        msg = "Config must specify 'data.input_path'"
        raise ValueError(msg)

    return PipelineConfig.model_validate(data)


def load_config(
    config_path: Path,
    base_path: Path | None = None,
) -> PipelineConfig:
    """
    Load pipeline configuration from YAML file(s).

    Args:
        config_path: Path to the main configuration file.
        base_path: Optional path to base configuration for inheritance.
            Defaults to a base.yaml next to config_path, if present.

    Returns:
        Fully validated PipelineConfig instance.
    """
    if base_path is not None:
        base_data = load_yaml(base_path)
    else:
        potential_base = config_path.parent / "base.yaml"
        base_data = (
            load_yaml(potential_base)
            if potential_base.exists() and potential_base != config_path
            else {}
        )

    main_data = load_yaml(config_path)

    merged = _merge_sections(base_data, main_data)
    return build_config(merged)
