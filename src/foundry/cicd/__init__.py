"""Source-to-deployment pipeline and its history."""

from foundry.cicd.history import DEPLOYMENT_HISTORY_TABLE, DeploymentHistory
from foundry.cicd.log_parser import BuildLogParser, LogPatterns, MAVEN_PATTERNS
from foundry.cicd.pipeline import (
    BuildSpec,
    BuildTool,
    CommandRunner,
    DeploymentPipeline,
    SubprocessRunner,
    derive_callback_url,
)

__all__ = [
    "BuildLogParser",
    "BuildSpec",
    "BuildTool",
    "CommandRunner",
    "DEPLOYMENT_HISTORY_TABLE",
    "DeploymentHistory",
    "DeploymentPipeline",
    "LogPatterns",
    "MAVEN_PATTERNS",
    "SubprocessRunner",
    "derive_callback_url",
]
