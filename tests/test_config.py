"""
Tests for configuration values and their dict/YAML round trip.
"""

import os

import pytest
from tabgraph.config import (
    ConfigError,
    NormalizerConfig,
    TabgraphConfig,
    config_from_dict,
    config_from_yaml,
    config_to_dict,
    config_to_yaml,
    data_path,
    default_config,
    ensure_output_dirs,
    load_config,
    relationships_path,
    source_path,
)
from tabgraph.hierarchy import TruncationRule, level


def test_default_config_contents():
    config = default_config()
    assert config.normalizer.symbols["%"] == "Percent"
    assert set(config.schemes) == {"naics", "soc", "hts", "apqc"}
    assert "naics.org.ai" in config.valid_namespaces()
    assert "standards.org.ai" in config.valid_namespaces()


def test_defaults_are_independent():
    a = default_config()
    b = default_config()
    a.normalizer.symbols["!"] = "Bang"
    assert "!" not in b.normalizer.symbols


def test_scheme_lookup():
    config = default_config()
    assert config.scheme("soc").rule == TruncationRule.ZERO_RUN
    with pytest.raises(ConfigError, match="Unknown scheme"):
        config.scheme("isic")


def test_dict_roundtrip():
    config = default_config()
    restored = config_from_dict(config_to_dict(config))
    assert restored == config


def test_yaml_roundtrip():
    config = default_config()
    restored = config_from_yaml(config_to_yaml(config))
    assert config_to_dict(restored) == config_to_dict(config)
    assert level("15-1252.01", restored.scheme("soc")) == "DetailedOccupation"


def test_missing_sections_use_defaults():
    config = config_from_dict({"symbols": {"%": "Pct"}})
    assert config.normalizer == NormalizerConfig(symbols={"%": "Pct"})
    assert "naics" in config.schemes
    assert config.namespaces == TabgraphConfig().namespaces


def test_none_is_default():
    assert config_from_dict(None) == default_config()


def test_custom_scheme_from_yaml():
    text = """
schemes:
  sic:
    rule: length
    tiers:
      - [2, MajorGroup]
      - [3, IndustryGroup]
      - [4, Industry]
    pattern: '\\d+'
"""
    config = config_from_yaml(text)
    sic = config.scheme("sic")
    assert level("0111", sic) == "Industry"
    assert sic.unknown_label == "Unknown"


class TestInvalidConfig:

    def test_not_a_mapping(self):
        with pytest.raises(ConfigError):
            config_from_yaml("- just\n- a list\n")

    def test_unknown_rule(self):
        with pytest.raises(ConfigError, match="unknown rule"):
            config_from_dict({"schemes": {"x": {"rule": "spiral", "tiers": [[1, "A"]]}}})

    def test_missing_rule(self):
        with pytest.raises(ConfigError, match="missing 'rule'"):
            config_from_dict({"schemes": {"x": {"tiers": [[1, "A"]]}}})

    def test_no_tiers(self):
        with pytest.raises(ConfigError, match="no tiers"):
            config_from_dict({"schemes": {"x": {"rule": "length", "tiers": []}}})

    def test_malformed_tiers(self):
        with pytest.raises(ConfigError, match="malformed tiers"):
            config_from_dict({"schemes": {"x": {"rule": "length", "tiers": [["two", "A"]]}}})

    def test_bad_symbols(self):
        with pytest.raises(ConfigError):
            config_from_dict({"symbols": ["%"]})

    def test_bad_yaml(self):
        with pytest.raises(ConfigError, match="Invalid YAML"):
            config_from_yaml("symbols: [unclosed")


def test_load_config(tmp_path):
    path = tmp_path / "tabgraph.yaml"
    path.write_text("namespaces:\n  NAICS: naics.org.ai\n", encoding="utf-8")

    config = load_config(str(path))
    assert config.valid_namespaces() == ["naics.org.ai"]


class TestOutputLayout:

    def test_paths(self, tmp_path):
        root = str(tmp_path)
        assert source_path("naics", root) == os.path.join(root, ".source", "naics")
        assert data_path(root) == os.path.join(root, ".data")
        assert relationships_path(root) == os.path.join(root, ".data", "relationships")

    def test_ensure_output_dirs(self, tmp_path):
        ensure_output_dirs(str(tmp_path))
        assert (tmp_path / ".data").is_dir()
        assert (tmp_path / ".data" / "relationships").is_dir()

    def test_ensure_output_dirs_is_repeatable(self, tmp_path):
        ensure_output_dirs(str(tmp_path))
        ensure_output_dirs(str(tmp_path))
        assert (tmp_path / ".data" / "relationships").is_dir()
