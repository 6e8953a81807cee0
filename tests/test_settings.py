import copy
import json
from pathlib import Path

import pytest

from keyword_rules import DEFAULT_SCORING_WEIGHTS, ConfigError
from settings import Settings

_ENV_VARS = [
    "SCORING_WEIGHTS_PATH",
    "SCORE_WEIGHT_DOMAIN",
    "SCORE_WEIGHT_DATA_EDGE",
    "THREAT_HIGH_DATA_EDGE",
    "MIN_RELEVANCE_SCORE",
    "DIGEST_THRESHOLD",
    "MAX_DAYS_BETWEEN_DIGESTS",
    "QUEUE_PATH",
    "DIGEST_OUTPUT_DIR",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_env() -> None:
    settings = Settings.from_env()

    assert settings.scoring.min_relevance_score == 5.0
    assert settings.scoring.weights.data_edge == 1.5
    assert settings.scoring.thresholds.high_data_edge == 2.0
    assert settings.queue.digest_threshold == 5
    assert settings.queue.max_days_between_digests == 7.0
    assert settings.queue.queue_path == Path("data/queue.json")


def test_env_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("MIN_RELEVANCE_SCORE", "4.5")
    monkeypatch.setenv("DIGEST_THRESHOLD", "3")
    monkeypatch.setenv("MAX_DAYS_BETWEEN_DIGESTS", "14")
    monkeypatch.setenv("SCORE_WEIGHT_DOMAIN", "2")
    monkeypatch.setenv("THREAT_HIGH_DATA_EDGE", "3.5")
    monkeypatch.setenv("QUEUE_PATH", str(tmp_path / "q.json"))

    settings = Settings.from_env()

    assert settings.scoring.min_relevance_score == 4.5
    assert settings.queue.min_relevance_score == 4.5
    assert settings.queue.digest_threshold == 3
    assert settings.queue.max_days_between_digests == 14.0
    assert settings.scoring.weights.domain == 2.0
    assert settings.scoring.thresholds.high_data_edge == 3.5
    assert settings.queue.queue_path == tmp_path / "q.json"


def test_weights_path_is_loaded(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    table = copy.deepcopy(DEFAULT_SCORING_WEIGHTS)
    table["industry_keywords"] = {"keywords": ["label"], "weight": 1.0}
    path = tmp_path / "weights.json"
    path.write_text(json.dumps(table), encoding="utf-8")
    monkeypatch.setenv("SCORING_WEIGHTS_PATH", str(path))

    assert Settings.from_env().scoring.rules.industry.keywords == ("label",)


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("MIN_RELEVANCE_SCORE", "high"),
        ("SCORE_WEIGHT_DATA_EDGE", "-1"),
        ("SCORE_WEIGHT_DOMAIN", "nan"),
        ("MIN_RELEVANCE_SCORE", "inf"),
        ("THREAT_HIGH_GENERATIVE", "-inf"),
        ("DIGEST_THRESHOLD", "0"),
        ("DIGEST_THRESHOLD", "5.5"),
    ],
)
def test_bad_env_values_are_config_errors(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigError, match=name):
        Settings.from_env()


def test_missing_weights_file_is_fatal(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("SCORING_WEIGHTS_PATH", str(tmp_path / "nope.json"))

    with pytest.raises(ConfigError):
        Settings.from_env()
