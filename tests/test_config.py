from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from boards.core.config import Settings, clean_float_value
from boards.recommendation.engine import ScoringWeights


def test_default_weights():
    settings = Settings(_env_file=None)

    assert settings.scoring_weights() == ScoringWeights(
        vibe=2.0, distance=1.5, time=1.2, popularity=1.0, trust=0.5, embed=1.0
    )
    assert settings.MAX_RESULTS_CAP == 50


def test_weights_from_environment(monkeypatch):
    monkeypatch.setenv('W_VIBE', '3.5')
    monkeypatch.setenv('W_TRUST', '0.25  # lower trust influence')

    weights = Settings(_env_file=None).scoring_weights()

    assert weights.vibe == 3.5
    assert weights.trust == 0.25
    assert weights.distance == 1.5


@pytest.mark.parametrize('value', ['0', '-1'])
def test_rejects_non_positive_weight(monkeypatch, value):
    monkeypatch.setenv('W_EMBED', value)

    with pytest.raises(ValidationError, match="Scoring weights must be positive"):
        Settings(_env_file=None)


def test_clean_float_value():
    assert clean_float_value(" 1.25 # tuned") == 1.25
    assert clean_float_value(2) == 2.0


def test_local_timezone():
    settings = Settings(_env_file=None, TIMEZONE="America/Los_Angeles")

    assert settings.local_timezone() == ZoneInfo("America/Los_Angeles")


def test_rejects_unknown_timezone():
    with pytest.raises(ValidationError, match="Unknown time zone"):
        Settings(_env_file=None, TIMEZONE="Mars/Olympus_Mons")
