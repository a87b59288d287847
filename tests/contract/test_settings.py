"""Tests for settings resolution (defaults, YAML file, environment)."""

import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from appberry.api_server.config import Settings, load_settings, validate_settings


VALID_FILE = """\
cors_origin: http://desk.example
db_path: /tmp/appberry-demo.db
minesweeper_rows: 8
minesweeper_cols: 8
minesweeper_bombs: 10
"""


class TestLoadSettings:
    def test_defaults(self):
        settings = load_settings({})
        assert settings == Settings()
        assert (settings.minesweeper_rows, settings.minesweeper_cols, settings.minesweeper_bombs) == (5, 5, 5)

    def test_yaml_file(self, tmp_path: Path):
        path = tmp_path / "appberry.yaml"
        path.write_text(VALID_FILE, encoding="utf-8")
        settings = load_settings({"APPBERRY_CONFIG": str(path)})
        assert settings.cors_origin == "http://desk.example"
        assert settings.minesweeper_bombs == 10
        assert settings.port == 8787

    def test_env_overrides_file(self, tmp_path: Path):
        path = tmp_path / "appberry.yaml"
        path.write_text(VALID_FILE, encoding="utf-8")
        settings = load_settings({
            "APPBERRY_CONFIG": str(path),
            "CORS_ORIGIN": "http://env.example",
            "APPBERRY_PORT": "9000",
        })
        assert settings.cors_origin == "http://env.example"
        assert settings.port == 9000

    def test_empty_file_is_defaults(self, tmp_path: Path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_settings({"APPBERRY_CONFIG": str(path)}) == Settings()

    def test_non_mapping_file(self, tmp_path: Path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="mapping"):
            load_settings({"APPBERRY_CONFIG": str(path)})

    def test_bad_port_env(self):
        with pytest.raises(ValueError, match="APPBERRY_PORT"):
            load_settings({"APPBERRY_PORT": "eighty"})

    def test_invalid_file_lists_errors(self, tmp_path: Path):
        path = tmp_path / "bad.yaml"
        path.write_text("port: 0\nminesweeper_bombs: 25\ncolour: red\n", encoding="utf-8")
        with pytest.raises(ValueError) as exc:
            load_settings({"APPBERRY_CONFIG": str(path)})
        msg = str(exc.value)
        assert "port must be 1-65535" in msg
        assert "minesweeper_bombs" in msg
        assert "Unknown settings: colour" in msg


class TestValidateSettings:
    def test_valid(self):
        assert validate_settings({"port": 8080, "minesweeper_bombs": 0}) == []

    def test_wrong_type(self):
        errors = validate_settings({"port": "8080"})
        assert any("'port' must be int" in e for e in errors)

    def test_bool_is_not_int(self):
        assert validate_settings({"minesweeper_rows": True})

    def test_grid_too_small(self):
        errors = validate_settings({"minesweeper_rows": 0})
        assert any("at least 1x1" in e for e in errors)
