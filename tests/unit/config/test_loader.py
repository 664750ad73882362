"""Unit tests for coverage option loading and precedence."""

from __future__ import annotations

from pathlib import Path

import pytest

from cobertura_graph.config.loader import (
    ConfigLoadError,
    env_name_for,
    load_config,
    load_coverage_config,
)
from cobertura_graph.config.schema import ConfigValidationError


def _write_config(project_dir: Path, text: str, name: str = "cobertura.toml") -> Path:
    path = project_dir / name
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_apply_without_file_or_environment(tmp_path: Path) -> None:
    config = load_config(tmp_path, environ={})

    assert config["tool_version"] == "2.1.1"
    assert config["coverage_formats"] == ["html"]
    assert config["ignore_trivial"] is False


def test_precedence_is_overrides_then_env_then_file(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        'tool_version = "1.9.4"\ncoverage_formats = ["xml"]\ncoverage_encoding = "UTF-8"\n',
    )
    environ = {
        "COBERTURA_TOOL_VERSION": "2.0.3",
        "COBERTURA_COVERAGE_FORMATS": "html, xml",
        "UNRELATED": "ignored",
    }

    from_file = load_config(tmp_path, environ={})
    from_env = load_config(tmp_path, environ=environ)
    explicit = load_config(tmp_path, environ=environ, overrides={"tool_version": "2.1.0"})

    assert from_file["tool_version"] == "1.9.4"
    assert from_file["coverage_encoding"] == "UTF-8"
    assert from_env["tool_version"] == "2.0.3"
    assert from_env["coverage_formats"] == ["html", "xml"]
    assert explicit["tool_version"] == "2.1.0"
    assert explicit["coverage_formats"] == ["html", "xml"]


def test_options_may_live_under_a_cobertura_table(tmp_path: Path) -> None:
    _write_config(tmp_path, "[cobertura]\nignore_trivial = true\n")

    assert load_config(tmp_path, environ={})["ignore_trivial"] is True


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("yes", True), ("ON", True), ("0", False), ("false", False)],
)
def test_boolean_env_values_are_coerced(tmp_path: Path, raw: str, expected: bool) -> None:
    config = load_config(tmp_path, environ={env_name_for("ignore_trivial"): raw})
    assert config["ignore_trivial"] is expected


def test_invalid_boolean_env_value_fails(tmp_path: Path) -> None:
    with pytest.raises(ConfigLoadError, match="COBERTURA_IGNORE_TRIVIAL"):
        load_config(tmp_path, environ={"COBERTURA_IGNORE_TRIVIAL": "maybe"})


def test_empty_optional_env_value_means_unset(tmp_path: Path) -> None:
    _write_config(tmp_path, 'coverage_encoding = "UTF-8"\n')
    config = load_config(tmp_path, environ={"COBERTURA_COVERAGE_ENCODING": ""})
    assert config["coverage_encoding"] is None


def test_explicit_config_path_must_exist(tmp_path: Path) -> None:
    with pytest.raises(ConfigLoadError, match="config file not found"):
        load_config(tmp_path, config_path=tmp_path / "missing.toml", environ={})


def test_invalid_toml_is_reported(tmp_path: Path) -> None:
    _write_config(tmp_path, "tool_version = \n")
    with pytest.raises(ConfigLoadError, match="invalid TOML"):
        load_config(tmp_path, environ={})


def test_invalid_file_values_fail_validation(tmp_path: Path) -> None:
    _write_config(tmp_path, 'coverage_formats = ["pdf"]\nbogus = 1\n')
    with pytest.raises(ConfigValidationError) as error:
        load_config(tmp_path, environ={})
    assert {issue.path for issue in error.value.issues} == {"bogus", "coverage_formats"}


def test_load_coverage_config_resolves_paths_against_project_dir(tmp_path: Path) -> None:
    project_dir = tmp_path / "core"
    project_dir.mkdir()
    _write_config(project_dir, 'coverage_source_dirs = ["src/main/java", "/abs/src"]\n')

    extension = load_coverage_config(
        project_dir,
        environ={"COBERTURA_COVERAGE_DATAFILE": "out/data.ser"},
    )

    resolved = project_dir.resolve()
    assert extension.coverage_datafile == resolved / "out" / "data.ser"
    assert extension.coverage_report_dir == resolved / "build" / "reports" / "cobertura"
    assert extension.coverage_source_dirs == [resolved / "src" / "main" / "java", Path("/abs/src")]
