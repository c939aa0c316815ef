"""
HeartSmiles Backend — Origin Matcher Unit Tests
=================================================

What:  Tests for the CORS allow-list rules and their evaluation.
Why:   The allow-list is a security boundary; pattern boundaries must be exact.

Test Strategy:
    ✅ Absent origin is always allowed
    ✅ Every exact rule matches only itself (case-sensitive, no substrings)
    ✅ Preview pattern boundaries (prefix, suffix, no overlap)
    ✅ Evaluations are logged, blocked origins at WARNING
"""

import logging

import pytest

from app.config import DEPLOYED_ORIGINS, LOCAL_ORIGINS, PREVIEW_ORIGIN
from app.services.origin_matcher import (
    ExactOrigin,
    OriginMatcher,
    PreviewDeploymentOrigin,
)

EXACT = LOCAL_ORIGINS + DEPLOYED_ORIGINS


@pytest.fixture
def matcher() -> OriginMatcher:
    return OriginMatcher([*(ExactOrigin(o) for o in EXACT), PREVIEW_ORIGIN])


class TestExactOrigins:

    def test_absent_origin_allowed(self, matcher):
        """Non-browser clients send no Origin and are never blocked."""
        assert matcher.is_allowed(None) is True

    @pytest.mark.parametrize("origin", EXACT)
    def test_configured_origin_allowed(self, matcher, origin):
        assert matcher.is_allowed(origin) is True

    @pytest.mark.parametrize(
        "origin",
        [
            "http://localhost:3001",
            "http://localhost:30000",
            "http://localhost",
            "HTTP://LOCALHOST:3000",
            "https://localhost:3000",
            "http://localhost:3000/",
            "",
        ],
    )
    def test_near_misses_denied(self, matcher, origin):
        """Only exact string equality counts; no prefix, case or slash leniency."""
        assert matcher.is_allowed(origin) is False

    def test_empty_rule_list_denies_everything_present(self):
        matcher = OriginMatcher([])
        assert matcher.is_allowed("http://localhost:3000") is False
        assert matcher.is_allowed(None) is True


class TestPreviewPattern:

    @pytest.mark.parametrize(
        "origin",
        [
            "https://heart-smiles-frontend-preview123.vercel.app",
            "https://heart-smiles-frontend-git-main-team.vercel.app",
            "https://heart-smiles-frontend.vercel.app",
        ],
    )
    def test_preview_subdomains_allowed(self, origin):
        assert PREVIEW_ORIGIN.matches(origin) is True

    @pytest.mark.parametrize(
        "origin",
        [
            "https://evil.vercel.app",
            "https://heart-smiles-frontendx.attacker.com",
            "http://heart-smiles-frontend-preview.vercel.app",
            "https://heart-smiles-frontend-preview.vercel.app.attacker.com",
            "https://Heart-Smiles-Frontend-preview.vercel.app",
            "https://xheart-smiles-frontend.vercel.app",
        ],
    )
    def test_lookalikes_denied(self, origin):
        assert PREVIEW_ORIGIN.matches(origin) is False

    def test_prefix_and_suffix_cannot_overlap(self):
        """`head*tail` needs both ends in full, even if they share characters."""
        rule = PreviewDeploymentOrigin(scheme="https://", host_prefix="a.b", host_suffix=".b.c")
        assert rule.matches("https://a.b.c") is False
        assert rule.matches("https://a.b.b.c") is True

    def test_describe(self):
        assert PREVIEW_ORIGIN.describe() == "https://heart-smiles-frontend*.vercel.app"


class TestLogging:

    def test_every_evaluation_logged(self, matcher, caplog):
        with caplog.at_level(logging.INFO, logger="app.services.origin_matcher"):
            matcher.is_allowed("http://localhost:3000")
        assert any("allowed" in r.getMessage() for r in caplog.records)

    def test_blocked_origin_logged_as_warning(self, matcher, caplog):
        with caplog.at_level(logging.INFO, logger="app.services.origin_matcher"):
            matcher.is_allowed("https://evil.example")
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert warnings
        assert "https://evil.example" in warnings[0].getMessage()

    def test_matches_does_not_log(self, matcher, caplog):
        with caplog.at_level(logging.DEBUG, logger="app.services.origin_matcher"):
            matcher.matches("https://evil.example")
        assert caplog.records == []
