"""
Unit tests for settings and the band tables they carry.
"""
import pytest
from pydantic import ValidationError

from posyandu.config import Settings, get_settings


class TestDefaults:

    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.puma_referral_threshold == 2
        assert settings.require_referral_decision is True
        assert [b.label for b in settings.bmi_bands] == ["sangat_kurus", "kurus", "normal", "gemuk", "obesitas"]
        assert [b.label for b in settings.adl_bands] == ["total", "berat", "sedang", "ringan", "mandiri"]

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("PUMA_REFERRAL_THRESHOLD", "3")
        monkeypatch.setenv("REQUIRE_REFERRAL_DECISION", "false")
        monkeypatch.setenv(
            "ADL_BANDS",
            '[{"label": "rendah", "lower": 0, "upper": 9}, {"label": "tinggi", "lower": 10}]',
        )
        settings = get_settings()
        assert settings.puma_referral_threshold == 3
        assert settings.require_referral_decision is False
        assert [b.label for b in settings.adl_bands] == ["rendah", "tinggi"]

    def test_cached(self):
        assert get_settings() is get_settings()


class TestBandValidation:

    @pytest.mark.parametrize("bands", [
        [],
        [{"label": "a", "lower": 1, "upper": None}],
        [{"label": "a", "lower": 0, "upper": 5}, {"label": "b", "lower": 7}],
        [{"label": "a", "lower": 0, "upper": 5}, {"label": "b", "lower": 5}],
        [{"label": "a", "lower": 0, "upper": 5}, {"label": "b", "lower": 6, "upper": 10}],
        [{"label": "a", "lower": 0}, {"label": "b", "lower": 1}],
    ])
    def test_bad_adl_tables(self, bands):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, ADL_BANDS=bands)

    @pytest.mark.parametrize("bands", [
        [],
        [{"label": "a", "upper": 18.4}],
        [{"label": "a", "upper": 25.0}, {"label": "b", "upper": 18.4}, {"label": "c"}],
        [{"label": "a"}, {"label": "b"}],
    ])
    def test_bad_bmi_tables(self, bands):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, BMI_BANDS=bands)

    def test_custom_tables_accepted(self):
        settings = Settings(
            _env_file=None,
            BMI_BANDS=[{"label": "kurus", "upper": 18.4}, {"label": "normal"}],
            ADL_BANDS=[{"label": "tergantung", "lower": 0, "upper": 11}, {"label": "mandiri", "lower": 12}],
        )
        assert settings.bmi_bands[-1].upper is None
        assert settings.adl_bands[1].lower == 12
