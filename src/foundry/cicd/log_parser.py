"""Build log interpretation.

The deployment facts are scraped from the console output of a Maven
deploy.  Three rules are applied:

- primary:   ``{<name>-<version>-jar-with-dependencies.jar} to environment: <env> <state>``
             gives name, version and success (``state`` starts with "success")
- fallback:  ``Building <name> <version>`` gives the version only
- timestamp: ``Finished at: <value>`` is always required

If neither the primary nor the fallback rule matches, or no timestamp is
present, the log is unusable and ParseError is raised.  Captured values stop
at either line terminator, so CRLF console output yields clean values.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from foundry.errors import ParseError
from foundry.models import DeploymentResult


@dataclass(frozen=True)
class LogPatterns:
    primary: re.Pattern[str]
    fallback: re.Pattern[str]
    timestamp: re.Pattern[str]


MAVEN_PATTERNS = LogPatterns(
    primary=re.compile(
        r"\{([^\r\n]*)-([0-9]+\.[0-9]+)-jar-with-dependencies.jar\} to environment: ([^\r\n]*) ([^\r\n]*)"
    ),
    fallback=re.compile(r"Building ([^\r\n]*) ([0-9]+\.[0-9]+)"),
    timestamp=re.compile(r"Finished at: ([^\r\n]*)"),
)


class BuildLogParser:
    """Derives deployment facts from raw build output."""

    def __init__(self, patterns: LogPatterns = MAVEN_PATTERNS) -> None:
        self.patterns = patterns

    def resolve(self, result: DeploymentResult) -> DeploymentResult:
        """Fill name, version, success and timestamp of ``result`` from its logs.

        ``result`` is updated in place and returned.  In the fallback case
        ``name`` and ``success`` keep whatever values they already had.

        Raises:
            ParseError: If no version rule matches or the timestamp is missing.
        """
        logs = result.logs or ""

        match = self.patterns.primary.search(logs)
        if match:
            result.name = match.group(1)
            result.version = match.group(2)
            result.success = match.group(4).startswith("success")
        else:
            match = self.patterns.fallback.search(logs)
            if match is None:
                raise ParseError("Build log contains no plugin name/version")
            result.version = match.group(2)

        match = self.patterns.timestamp.search(logs)
        if match is None:
            raise ParseError("Build log contains no 'Finished at:' timestamp")
        result.timestamp = match.group(1)

        return result
