from __future__ import annotations

from pathlib import Path

import pytest

from dirwatch.config import TARGET_PATH_ENV, load_options
from dirwatch.errors import ConfigurationError


def test_directory_argument_wins_over_environment(tmp_path: Path) -> None:
    options = load_options(tmp_path, environ={TARGET_PATH_ENV: "/elsewhere"})

    assert options.root == tmp_path
    assert options.recursive is True


def test_root_from_environment(tmp_path: Path) -> None:
    options = load_options(environ={TARGET_PATH_ENV: f"  {tmp_path}  "}, recursive=False)

    assert options.root == tmp_path
    assert options.recursive is False


@pytest.mark.parametrize("environ", [{}, {TARGET_PATH_ENV: ""}, {TARGET_PATH_ENV: "   "}])
def test_missing_root_is_a_configuration_error(environ: dict[str, str]) -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        load_options(environ=environ)

    assert TARGET_PATH_ENV in str(excinfo.value)


def test_home_is_expanded(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))

    options = load_options("~/watched", log_path=Path("~/logs/dirwatch.log"), environ={})

    assert options.root == tmp_path / "watched"
    assert options.log_path == tmp_path / "logs" / "dirwatch.log"
