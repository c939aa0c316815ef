"""
HeartSmiles Backend — Configuration Tests
===========================================

What:  Tests for Settings parsing and the derived PipelineConfig.
Why:   Optional environment values must extend the CORS allow-list without
       ever introducing an empty-string origin.
"""

import pytest
from pydantic import ValidationError

from app.config import DEPLOYED_ORIGINS, LOCAL_ORIGINS, PREVIEW_ORIGIN, PipelineConfig, Settings
from app.services.origin_matcher import ExactOrigin


def make_settings(**values) -> Settings:
    defaults = {
        "frontend_url": None,
        "vercel_url": None,
        "next_public_vercel_url": None,
        "vercel": None,
        "vercel_env": None,
    }
    defaults.update(values)
    return Settings(_env_file=None, **defaults)


class TestOriginRules:

    def test_static_rules_only(self):
        rules = make_settings().origin_rules()
        exact = [rule.value for rule in rules if isinstance(rule, ExactOrigin)]
        assert exact == [*LOCAL_ORIGINS, *DEPLOYED_ORIGINS]
        assert rules[-1] == PREVIEW_ORIGIN

    def test_optional_values_added(self):
        rules = make_settings(
            frontend_url="https://heartsmiles.example.org",
            vercel_url="backend-abc.vercel.app",
            next_public_vercel_url="frontend-abc.vercel.app",
        ).origin_rules()
        values = {rule.value for rule in rules if isinstance(rule, ExactOrigin)}
        assert "https://heartsmiles.example.org" in values
        assert "https://backend-abc.vercel.app" in values
        assert "https://frontend-abc.vercel.app" in values

    def test_empty_values_filtered(self):
        rules = make_settings(frontend_url="", vercel_url="").origin_rules()
        values = [rule.value for rule in rules if isinstance(rule, ExactOrigin)]
        assert "" not in values
        assert "https://" not in values


class TestModes:

    def test_production_flag(self):
        assert make_settings(node_env="Production").is_production is True
        assert make_settings(node_env="development").is_production is False
        assert make_settings(node_env="test").is_production is False

    @pytest.mark.parametrize(
        "values, expected",
        [
            ({}, False),
            ({"vercel": "1"}, True),
            ({"vercel": "0"}, False),
            ({"vercel_env": "preview"}, True),
        ],
    )
    def test_serverless_detection(self, values, expected):
        assert make_settings(**values).is_serverless is expected

    def test_invalid_log_level_rejected(self):
        with pytest.raises(ValidationError):
            make_settings(log_level="LOUD")


class TestPipelineConfig:

    def test_missing_jwt_secret_reported(self):
        source = make_settings(jwt_secret="")
        assert source.missing_required() == ["JWT_SECRET"]
        assert PipelineConfig.from_settings(source).jwt_secret_configured is False

    def test_from_settings(self):
        source = make_settings(jwt_secret="s3cret", node_env="production", rate_limit_max=5)
        config = PipelineConfig.from_settings(source)
        assert config.production is True
        assert config.rate_limit_max == 5
        assert config.rate_limit_window_seconds == 900
        assert config.body_limit_bytes == 10 * 1024 * 1024
        assert config.jwt_secret_configured is True
        assert "/api/health" in config.rate_limit_exempt_paths

    def test_config_is_immutable(self):
        config = PipelineConfig.from_settings(make_settings())
        with pytest.raises(AttributeError):
            config.production = True
