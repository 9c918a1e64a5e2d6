"""Configuration loading from the protoc parameter string and .twirpgen.yml."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_CONFIG_NAME = ".twirpgen.yml"
_PATH_MODES = {"import", "source_relative"}


class ConfigError(RuntimeError):
    """Raised when the plugin parameter or configuration file is invalid."""


@dataclass
class GeneratorConfig:
    """Settings recognised by the generator."""

    option_prefix: str = "method_option"
    twirp_package: str = "sniper/util/twirp"
    ctxkit_package: str = "sniper/util/ctxkit"
    validate_enable: bool = False
    paths: str = "import"
    go_package_overrides: Dict[str, str] = field(default_factory=dict)
    gofmt: str = "gofmt"
    templates_dir: Optional[Path] = None
    verbose: bool = False


def parse_parameter(parameter: str | None) -> Dict[str, str]:
    """Split ``k=v,k=v`` into a mapping; a bare key maps to an empty string."""
    values: Dict[str, str] = {}
    if not parameter:
        return values
    for item in parameter.split(","):
        item = item.strip()
        if not item:
            continue
        key, _, value = item.partition("=")
        values[key.strip()] = value.strip()
    return values


def load_config(parameter: str | None = None, *, base_dir: Path | None = None) -> GeneratorConfig:
    """Build the effective configuration.

    Values come from the YAML file named by ``config=`` (or ``.twirpgen.yml``
    in ``base_dir`` when present) and are overridden by the parameter string.
    """
    params = parse_parameter(parameter)
    config_path = _resolve_config_path(params.pop("config", None), base_dir)

    data: Dict[str, Any] = {}
    if config_path is not None:
        data.update(_read_config(config_path))

    overrides = _as_str_dict(data.pop("go_package_overrides", None), "go_package_overrides")
    for key in list(params):
        if key.startswith("M") and len(key) > 1:
            overrides[key[1:]] = params.pop(key)
    data.update(params)

    config = GeneratorConfig(go_package_overrides=overrides)
    unknown = set(data) - {
        "option_prefix",
        "twirp_package",
        "ctxkit_package",
        "validate_enable",
        "paths",
        "gofmt",
        "templates_dir",
        "verbose",
    }
    if unknown:
        raise ConfigError(f"Unknown parameters: {', '.join(sorted(unknown))}")

    if "option_prefix" in data:
        config.option_prefix = _as_str(data["option_prefix"], "option_prefix")
    if "twirp_package" in data:
        config.twirp_package = _as_str(data["twirp_package"], "twirp_package")
    if "ctxkit_package" in data:
        config.ctxkit_package = _as_str(data["ctxkit_package"], "ctxkit_package")
    if "gofmt" in data:
        config.gofmt = _as_str(data["gofmt"], "gofmt")
    if "templates_dir" in data:
        templates_dir = Path(_as_str(data["templates_dir"], "templates_dir")).expanduser()
        if base_dir is not None and not templates_dir.is_absolute():
            templates_dir = base_dir / templates_dir
        if not templates_dir.is_dir():
            raise ConfigError(f"templates_dir {templates_dir} is not a directory")
        config.templates_dir = templates_dir
    if "validate_enable" in data:
        config.validate_enable = _as_bool(data["validate_enable"], "validate_enable")
    if "verbose" in data:
        config.verbose = _as_bool(data["verbose"], "verbose")
    if "paths" in data:
        paths = _as_str(data["paths"], "paths")
        if paths not in _PATH_MODES:
            raise ConfigError(f"paths must be one of {sorted(_PATH_MODES)}, got {paths!r}")
        config.paths = paths

    if not config.twirp_package:
        raise ConfigError("twirp_package must not be empty")
    return config


def _resolve_config_path(value: Optional[str], base_dir: Path | None) -> Optional[Path]:
    if value:
        path = Path(value).expanduser()
        if not path.exists():
            raise ConfigError(f"Config file {path} does not exist")
        return path
    if base_dir is not None:
        candidate = base_dir / DEFAULT_CONFIG_NAME
        if candidate.exists():
            return candidate
    return None


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _as_str(value: Any, key: str) -> str:
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        return str(value)
    raise ConfigError(f"{key} must be a string")


def _as_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        # A bare flag such as ``validate_enable`` counts as true.
        if lowered in {"", "true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    raise ConfigError(f"{key} must be a boolean, got {value!r}")


def _as_str_dict(value: Any, key: str) -> Dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{key} must be a mapping")
    return {str(k): _as_str(v, key) for k, v in value.items()}


__all__ = ["ConfigError", "DEFAULT_CONFIG_NAME", "GeneratorConfig", "load_config", "parse_parameter"]
