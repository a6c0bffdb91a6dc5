from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from templet.config import (
    RuntimeConfig,
    get_runtime_config,
    load_runtime_config,
    reset_runtime_config_for_tests,
    resolve_template_path,
)


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    reset_runtime_config_for_tests()
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    monkeypatch.delenv("TEMPLET_PATH", raising=False)
    monkeypatch.chdir(tmp_path)


def _write_user_config(tmp_path: Path, text: str) -> Path:
    root = tmp_path / "cfg" / "templet"
    root.mkdir(parents=True, exist_ok=True)
    path = root / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_without_files() -> None:
    cfg = load_runtime_config(autoload=True)

    assert cfg.encoding == "utf-8"
    assert cfg.data_format == "auto"
    assert cfg.search_paths == []
    assert cfg.loaded_sources == []


def test_reads_user_config(tmp_path: Path) -> None:
    path = _write_user_config(tmp_path, "io:\n  encoding: latin-1\n  data_format: yaml\n")

    cfg = load_runtime_config(autoload=True)

    assert cfg.encoding == "latin-1"
    assert cfg.data_format == "yaml"
    assert cfg.loaded_sources == [str(path)]


def test_project_config_overrides_user_config(tmp_path: Path) -> None:
    _write_user_config(tmp_path, "io:\n  encoding: latin-1\n")
    (tmp_path / ".templet.yaml").write_text("io:\n  encoding: utf-16\n", encoding="utf-8")

    cfg = load_runtime_config(autoload=True)

    assert cfg.encoding == "utf-16"
    assert len(cfg.loaded_sources) == 2


def test_invalid_values_are_ignored_with_warning(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    _write_user_config(tmp_path, "io:\n  data_format: xml\n  encoding: 5\n")

    with caplog.at_level(logging.WARNING, logger="templet.config"):
        cfg = load_runtime_config(autoload=True)

    assert cfg.data_format == "auto"
    assert cfg.encoding == "utf-8"
    assert "io.data_format" in caplog.text
    assert "io.encoding" in caplog.text


def test_invalid_yaml_is_skipped(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    _write_user_config(tmp_path, "io: [\n")

    with caplog.at_level(logging.WARNING, logger="templet.config"):
        cfg = load_runtime_config(autoload=True)

    assert cfg.encoding == "utf-8"
    assert "Skipping invalid config file" in caplog.text


def test_autoload_disabled_ignores_files(tmp_path: Path) -> None:
    _write_user_config(tmp_path, "io:\n  encoding: latin-1\n")

    cfg = load_runtime_config(autoload=False)

    assert cfg.encoding == "utf-8"
    assert cfg.loaded_sources == []


def test_cache_reloads_when_file_changes(tmp_path: Path) -> None:
    _write_user_config(tmp_path, "io:\n  encoding: latin-1\n")
    assert load_runtime_config(autoload=True).encoding == "latin-1"

    _write_user_config(tmp_path, "io:\n  encoding: ascii\n")

    assert load_runtime_config(autoload=True).encoding == "ascii"
    assert get_runtime_config().encoding == "ascii"


def test_search_paths_relative_to_config_file(tmp_path: Path) -> None:
    (tmp_path / "views").mkdir()
    (tmp_path / "views" / "page.tpl").write_text("x", encoding="utf-8")
    (tmp_path / ".templet.yaml").write_text(
        "templates:\n  search_paths: [views]\n", encoding="utf-8"
    )

    cfg = load_runtime_config(autoload=True)

    assert cfg.search_paths == [tmp_path / "views"]
    assert resolve_template_path("page.tpl", cfg) == tmp_path / "views" / "page.tpl"


def test_env_search_paths_come_first(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    first = tmp_path / "first"
    second = tmp_path / "second"
    for root in (first, second):
        root.mkdir()
        (root / "page.tpl").write_text(root.name, encoding="utf-8")
    (tmp_path / ".templet.yaml").write_text(
        "templates:\n  search_paths: [second]\n", encoding="utf-8"
    )
    monkeypatch.setenv("TEMPLET_PATH", str(first))

    cfg = load_runtime_config(autoload=True)

    assert cfg.search_paths == [first, tmp_path / "second"]
    assert resolve_template_path("page.tpl", cfg) == first / "page.tpl"


def test_resolve_template_path_prefers_existing_path(tmp_path: Path) -> None:
    (tmp_path / "local.tpl").write_text("x", encoding="utf-8")
    cfg = RuntimeConfig(search_paths=[tmp_path / "nowhere"])

    assert resolve_template_path("local.tpl", cfg) == Path("local.tpl")
    assert resolve_template_path("absent.tpl", cfg) == Path("absent.tpl")


def test_get_runtime_config_before_load_uses_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TEMPLET_PATH", os.pathsep.join(["a", "b"]))

    assert get_runtime_config().search_paths == [Path("a"), Path("b")]
