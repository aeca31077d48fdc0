from pathlib import Path

import pytest

PYPROJECT = Path(__file__).resolve().parents[3] / "pyproject.toml"


def test_install_ships_no_top_level_modules():
    tomllib = pytest.importorskip("tomllib")
    with PYPROJECT.open("rb") as fh:
        config = tomllib.load(fh)

    setuptools_config = config["tool"]["setuptools"]
    assert setuptools_config["packages"] == []
    assert setuptools_config["py-modules"] == []
    assert config["tool"]["pytest"]["ini_options"]["pythonpath"] == ["apps/backend"]
