import copy
import json
from pathlib import Path

import pytest

from keyword_rules import (
    DEFAULT_SCORING_WEIGHTS,
    ConfigError,
    KeywordRuleSet,
    keyword_pattern,
    load_rule_set,
)


def test_default_rule_set_loads() -> None:
    rules = load_rule_set()

    assert "music" in rules.domain_tier1.keywords
    assert rules.domain_tier1.weight == 0.5
    assert rules.data_edge_critical.weight == 1.0
    assert rules.industry.keywords


def test_load_rule_set_from_file(tmp_path: Path) -> None:
    table = copy.deepcopy(DEFAULT_SCORING_WEIGHTS)
    table["domain_keywords"]["tier1"] = {"keywords": ["podcast"], "weight": 0.25}
    path = tmp_path / "weights.json"
    path.write_text(json.dumps(table), encoding="utf-8")

    rules = load_rule_set(path)

    assert rules.domain_tier1.keywords == ("podcast",)
    assert rules.domain_tier1.weight == 0.25


def test_missing_file_is_config_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Cannot read"):
        load_rule_set(tmp_path / "missing.json")


def test_invalid_json_is_config_error(tmp_path: Path) -> None:
    path = tmp_path / "weights.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigError, match="not valid JSON"):
        load_rule_set(path)


@pytest.mark.parametrize(
    "table_name",
    ["domain_keywords", "generative_keywords", "data_edge_keywords", "industry_keywords", "commercial_keywords"],
)
def test_missing_table_is_config_error(table_name: str) -> None:
    table = copy.deepcopy(DEFAULT_SCORING_WEIGHTS)
    del table[table_name]

    with pytest.raises(ConfigError):
        KeywordRuleSet.from_dict(table)


def test_missing_tier_is_config_error() -> None:
    table = copy.deepcopy(DEFAULT_SCORING_WEIGHTS)
    del table["data_edge_keywords"]["tier4_compliance"]

    with pytest.raises(ConfigError, match="tier4_compliance"):
        KeywordRuleSet.from_dict(table)


@pytest.mark.parametrize("weight", [None, "1.0", -0.5, True])
def test_bad_weight_is_config_error(weight: object) -> None:
    table = copy.deepcopy(DEFAULT_SCORING_WEIGHTS)
    table["generative_keywords"]["tier1"]["weight"] = weight

    with pytest.raises(ConfigError, match="weight"):
        KeywordRuleSet.from_dict(table)


def test_bad_keywords_is_config_error() -> None:
    table = copy.deepcopy(DEFAULT_SCORING_WEIGHTS)
    table["commercial_keywords"]["tier2"]["keywords"] = "market"

    with pytest.raises(ConfigError, match="keywords"):
        KeywordRuleSet.from_dict(table)


def test_non_object_table_is_config_error() -> None:
    with pytest.raises(ConfigError):
        KeywordRuleSet.from_dict(["domain_keywords"])


def test_keyword_pattern_escapes_special_characters() -> None:
    pattern = keyword_pattern("text-to-music")

    assert pattern.search("A Text-to-Music model")
    assert not pattern.search("text to music")


def test_tier_count_and_matched() -> None:
    rules = load_rule_set()

    assert rules.domain_tier1.count("music", "Music and more music") == 2
    assert rules.generative_tier1.matched("diffusion and autoregressive decoding") == ["diffusion", "autoregressive"]
