from __future__ import annotations

import json
from pathlib import Path

import pytest

from polyview.core.config import LoaderConfig, load_config, normalize_config
from polyview.core.diagnostics import ConfigError

ROOT = Path(__file__).resolve().parents[1]


def test_defaults():
    config = normalize_config()
    assert config == LoaderConfig()
    assert config.polygon_policy == "forward"
    assert config.logs_dir is None


def test_load_yaml_example():
    config = load_config(ROOT / "examples" / "polyview.yaml")
    assert config.polygon_policy == "forward"
    assert config.log_level == "INFO"


def test_load_json_resolves_logs_dir(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"polygon_policy": "reject", "logs_dir": "logs"}), encoding="utf-8")
    config = load_config(path)
    assert config.polygon_policy == "reject"
    assert config.logs_dir == (tmp_path / "logs").resolve()


def test_load_toml(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('[polyview]\npolygon_policy = "reject"\n', encoding="utf-8")
    assert load_config(path).polygon_policy == "reject"


def test_unknown_policy_rejected():
    with pytest.raises(ConfigError) as excinfo:
        normalize_config({"polygon_policy": "triangulate"})
    assert excinfo.value.code == "E-CONFIG"


def test_unknown_key_rejected():
    with pytest.raises(ConfigError):
        normalize_config({"weld": True})


def test_log_level_is_normalized():
    assert normalize_config({"log_level": "debug"}).log_level == "DEBUG"


def test_unknown_log_level_is_config_error(tmp_path):
    with pytest.raises(ConfigError):
        normalize_config({"log_level": "VERBOSE"})

    path = tmp_path / "config.json"
    path.write_text(json.dumps({"log_level": "VERBOSE"}), encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)
