from __future__ import annotations

import hashlib
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


LOGGER = logging.getLogger(__name__)

DATA_FORMATS = ("auto", "json", "yaml")
PROJECT_CONFIG_NAME = ".templet.yaml"


@dataclass
class RuntimeConfig:
    encoding: str = "utf-8"
    data_format: str = "auto"
    search_paths: list[Path] = field(default_factory=list)
    loaded_sources: list[str] = field(default_factory=list)


_RUNTIME_CONFIG: RuntimeConfig | None = None
_RUNTIME_CONFIG_KEY: tuple[Any, ...] | None = None


def _config_root() -> Path:
    base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return base / "templet"


def _config_paths() -> list[Path]:
    # Later files override earlier ones.
    return [_config_root() / "config.yaml", Path.cwd() / PROJECT_CONFIG_NAME]


def _file_signature(path: Path) -> tuple[int, str] | None:
    if not path.exists() or not path.is_file():
        return None
    data = path.read_bytes()
    digest = hashlib.sha1(data).hexdigest()
    return (len(data), digest)


def _cache_key(*, autoload: bool) -> tuple[Any, ...]:
    env_path = os.environ.get("TEMPLET_PATH", "")
    if not autoload:
        return (autoload, str(Path.cwd()), env_path)
    return (
        autoload,
        str(Path.cwd()),
        env_path,
        *(_file_signature(path) for path in _config_paths()),
    )


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        LOGGER.warning("Skipping invalid config file: %s (%s)", path, exc)
        return {}
    if not isinstance(raw, dict):
        LOGGER.warning("Skipping config file with non-mapping content: %s", path)
        return {}
    return raw


def _apply_config(cfg: RuntimeConfig, raw: dict[str, Any], path: Path) -> None:
    io_section = raw.get("io", {})
    templates = raw.get("templates", {})

    if isinstance(io_section, dict):
        encoding = io_section.get("encoding")
        data_format = io_section.get("data_format")
        if isinstance(encoding, str) and encoding.strip():
            cfg.encoding = encoding.strip()
        elif encoding is not None:
            LOGGER.warning("Ignoring io.encoding in %s: expected a non-empty string", path)
        if data_format in DATA_FORMATS:
            cfg.data_format = data_format
        elif data_format is not None:
            LOGGER.warning("Ignoring io.data_format in %s: expected one of %s", path, DATA_FORMATS)

    if isinstance(templates, dict):
        search_paths = templates.get("search_paths")
        if isinstance(search_paths, list) and all(isinstance(p, str) for p in search_paths):
            # Relative entries are relative to the file that names them.
            cfg.search_paths = [path.parent / Path(p).expanduser() for p in search_paths]
        elif search_paths is not None:
            LOGGER.warning("Ignoring templates.search_paths in %s: expected a list of strings", path)


def _env_search_paths() -> list[Path]:
    raw = os.environ.get("TEMPLET_PATH", "")
    return [Path(p).expanduser() for p in raw.split(os.pathsep) if p.strip()]


def load_runtime_config(*, autoload: bool = True) -> RuntimeConfig:
    global _RUNTIME_CONFIG, _RUNTIME_CONFIG_KEY
    cache_key = _cache_key(autoload=autoload)
    if _RUNTIME_CONFIG is not None and _RUNTIME_CONFIG_KEY == cache_key:
        return _RUNTIME_CONFIG

    cfg = RuntimeConfig()
    if autoload:
        for path in _config_paths():
            if not path.is_file():
                continue
            _apply_config(cfg, _read_yaml(path), path)
            cfg.loaded_sources.append(str(path))
    cfg.search_paths = _env_search_paths() + cfg.search_paths

    _RUNTIME_CONFIG = cfg
    _RUNTIME_CONFIG_KEY = cache_key
    return cfg


def get_runtime_config() -> RuntimeConfig:
    if _RUNTIME_CONFIG is None:
        return RuntimeConfig(search_paths=_env_search_paths())
    return _RUNTIME_CONFIG


def resolve_template_path(name: str, cfg: RuntimeConfig | None = None) -> Path:
    """Return ``name`` if it exists, else the first match in the search paths."""
    candidate = Path(name)
    if candidate.exists() or candidate.is_absolute():
        return candidate
    for root in (cfg or get_runtime_config()).search_paths:
        found = root / name
        if found.is_file():
            return found
    return candidate


def reset_runtime_config_for_tests() -> None:
    global _RUNTIME_CONFIG, _RUNTIME_CONFIG_KEY
    _RUNTIME_CONFIG = None
    _RUNTIME_CONFIG_KEY = None
