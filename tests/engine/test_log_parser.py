"""Unit tests for BuildLogParser: primary, fallback and timestamp rules."""

from __future__ import annotations

import re

import pytest

from foundry.cicd.log_parser import BuildLogParser, LogPatterns, MAVEN_PATTERNS
from foundry.errors import ParseError
from foundry.models import DeploymentResult
from tests.fakes import FALLBACK_LOG, SUCCESS_LOG

pytestmark = pytest.mark.unit


@pytest.fixture
def parser():
    return BuildLogParser()


def _resolve(parser, logs: str) -> DeploymentResult:
    return parser.resolve(DeploymentResult(logs=logs))


class TestPrimaryRule:

    def test_minimal_success(self, parser):
        logs = (
            "{myplugin-1.2-jar-with-dependencies.jar} to environment: prod success\n"
            "Finished at: 2024-01-01T00:00:00Z"
        )
        result = _resolve(parser, logs)
        assert result.name == "myplugin"
        assert result.version == "1.2"
        assert result.success is True
        assert result.timestamp == "2024-01-01T00:00:00Z"

    def test_full_console_output(self, parser):
        result = _resolve(parser, SUCCESS_LOG)
        assert (result.name, result.version, result.success) == ("myplugin", "1.2", True)

    def test_success_is_prefix_match(self, parser):
        logs = (
            "{p-2.0-jar-with-dependencies.jar} to environment: dev successful\n"
            "Finished at: t"
        )
        assert _resolve(parser, logs).success is True

    def test_failed_state(self, parser):
        logs = (
            "{p-2.0-jar-with-dependencies.jar} to environment: dev failed\n"
            "Finished at: t"
        )
        result = _resolve(parser, logs)
        assert result.success is False
        assert result.name == "p"
        assert result.version == "2.0"

    def test_primary_wins_over_fallback(self, parser):
        logs = (
            "Building other 9.9\n"
            "{p-2.0-jar-with-dependencies.jar} to environment: dev success\n"
            "Finished at: t"
        )
        assert _resolve(parser, logs).version == "2.0"


class TestFallbackRule:

    def test_version_only(self, parser):
        result = _resolve(parser, "Building myplugin 1.3\nFinished at: 2024-02-01")
        assert result.version == "1.3"
        assert result.success is False
        assert result.name is None

    def test_keeps_prior_name_and_success(self, parser):
        result = DeploymentResult(logs=FALLBACK_LOG, name="preset", success=True)
        parser.resolve(result)
        assert result.name == "preset"
        assert result.success is True
        assert result.version == "1.3"


class TestLineEndings:

    def test_crlf_fallback_timestamp(self, parser):
        result = _resolve(
            parser, "Building p 1.0\r\n[INFO] Finished at: 2024-01-01T00:00:00Z\r\n"
        )
        assert result.version == "1.0"
        assert result.timestamp == "2024-01-01T00:00:00Z"

    def test_crlf_primary(self, parser):
        logs = (
            "{p-2.0-jar-with-dependencies.jar} to environment: dev success\r\n"
            "Finished at: t\r\n"
        )
        result = _resolve(parser, logs)
        assert (result.name, result.version, result.success) == ("p", "2.0", True)
        assert result.timestamp == "t"

    def test_crlf_history_key(self, parser):
        result = DeploymentResult(
            plugin_id="7", logs="Building p 1.0\r\nFinished at: 2024-01-01\r\n"
        )
        parser.resolve(result)
        assert result.id == "7_1.0_2024-01-01"


class TestFailures:

    def test_no_version_rule_matches(self, parser):
        with pytest.raises(ParseError):
            _resolve(parser, "[ERROR] repository not found\nFinished at: 2024-01-01")

    def test_missing_timestamp(self, parser):
        with pytest.raises(ParseError, match="Finished at"):
            _resolve(parser, "Building myplugin 1.3\n")

    def test_empty_logs(self, parser):
        with pytest.raises(ParseError):
            _resolve(parser, "")


class TestCustomPatterns:

    def test_rules_are_swappable(self):
        patterns = LogPatterns(
            primary=re.compile(r"artifact (\w+)@(\d+\.\d+) (\w+) (\w+)"),
            fallback=MAVEN_PATTERNS.fallback,
            timestamp=re.compile(r"done: (.*)"),
        )
        result = BuildLogParser(patterns).resolve(
            DeploymentResult(logs="artifact thing@4.1 env success\ndone: now")
        )
        assert (result.name, result.version, result.success, result.timestamp) == (
            "thing", "4.1", True, "now",
        )
