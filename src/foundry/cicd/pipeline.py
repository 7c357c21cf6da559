"""Deployment pipeline: build a plugin from a git repository and record it.

One run:

    validate request -> decode caller credentials -> derive callback URL
    -> acquire workspace cicd/<pluginId> -> git clone ; mvn deploy
    -> parse console output -> append to history -> release workspace

The workspace is keyed by plugin id only.  Two concurrent deployments of
the same plugin id share, wipe and delete each other's checkout; callers
are expected to run at most one deployment per plugin id at a time.

The build runs synchronously on a worker thread.  With no timeout
configured a hung build blocks its request indefinitely.
"""

from __future__ import annotations

import asyncio
import shlex
import shutil
import subprocess
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Protocol

from loguru import logger

from foundry.auth import decode_basic_credentials
from foundry.cicd.history import DeploymentHistory
from foundry.cicd.log_parser import BuildLogParser
from foundry.errors import MalformedRequestError, ValidationError
from foundry.models import DeploymentRequest, DeploymentResult

DEFAULT_BRANCH = "master"
MANDATORY_FIELDS = ("repo_url", "plugin_id")


class CommandRunner(Protocol):
    def run(self, argv: list[str], timeout: Optional[float] = None) -> str:
        """Run ``argv`` to completion and return its combined stdout/stderr."""


class SubprocessRunner:
    """Runs commands with subprocess, stderr folded into stdout.

    Output is decoded as UTF-8; undecodable bytes become U+FFFD.
    """

    def run(self, argv: list[str], timeout: Optional[float] = None) -> str:
        completed = subprocess.run(
            argv,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
        if completed.returncode != 0:
            logger.warning(f"Build command exited with status {completed.returncode}")
        return completed.stdout or ""


@dataclass
class BuildSpec:
    """Everything the build command template needs."""
    repo_url: str
    plugin_id: str
    workspace: Path
    branch: str = DEFAULT_BRANCH
    sub_dir: str = ""
    skip_tests: bool = False
    username: str = ""
    password: str = ""
    callback_url: Optional[str] = None


@dataclass
class BuildTool:
    """Command template for clone-then-build.

    The two steps are joined with ``;`` so the build runs (and reports)
    even when the clone fails.
    """
    git_executable: str = "git"
    build_executable: str = "mvn"
    property_prefix: str = "foundry"

    def command(self, spec: BuildSpec) -> str:
        q = shlex.quote
        workspace = str(spec.workspace)
        pom = f"{workspace}/{spec.sub_dir}/pom.xml" if spec.sub_dir else f"{workspace}/pom.xml"

        clone = [
            self.git_executable, "clone", "--single-branch",
            "--branch", spec.branch, spec.repo_url, workspace,
        ]
        build = [self.build_executable, "deploy", "-f", pom]
        if spec.skip_tests:
            build.append("-DskipTests")
        p = self.property_prefix
        build += [
            f"-D{p}.username={spec.username}",
            f"-D{p}.password={spec.password}",
            f"-D{p}.id={spec.plugin_id}",
        ]
        if spec.callback_url:
            build.append(f"-D{p}.endpoint={spec.callback_url}")

        return " ".join(q(a) for a in clone) + " ; " + " ".join(q(a) for a in build)

    def argv(self, spec: BuildSpec) -> list[str]:
        return ["/bin/sh", "-c", self.command(spec)]


def derive_callback_url(request_url: str, admin_prefix: str) -> Optional[str]:
    """Origin of the inbound request with the admin path cut off.

    ``http://host:8000/foundry/admin/cicd`` -> ``http://host:8000``.
    Returns None if the URL does not contain the admin prefix.
    """
    try:
        return request_url[: request_url.index(admin_prefix)]
    except ValueError:
        logger.warning(f"Cannot derive callback URL from {request_url}; continuing without one")
        return None


def validate(request: DeploymentRequest) -> None:
    """Raise ValidationError naming the first missing mandatory field.

    The request is echoed back in the error with ``message`` set.
    """
    for field in MANDATORY_FIELDS:
        if not getattr(request, field):
            alias = DeploymentRequest.model_fields[field].alias or field
            request.message = f"Field {alias} is mandatory"
            raise ValidationError(request.message, payload=request)


@contextmanager
def workspace(root: Path, plugin_id: str) -> Iterator[Path]:
    """Fresh checkout directory ``<root>/<plugin_id>``, removed on exit.

    Any existing directory at that path is wiped first.
    """
    root = Path(root).resolve()
    path = (root / plugin_id).resolve()
    if path.parent != root:
        raise MalformedRequestError(f"Invalid plugin id for a workspace: {plugin_id!r}")

    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


class DeploymentPipeline:
    """Orchestrates a source-to-deployment run and records its outcome."""

    def __init__(
        self,
        history: DeploymentHistory,
        *,
        workspace_root: Path = Path("cicd"),
        admin_prefix: str = "/foundry/admin",
        tool: Optional[BuildTool] = None,
        runner: Optional[CommandRunner] = None,
        parser: Optional[BuildLogParser] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.history = history
        self.workspace_root = Path(workspace_root)
        self.admin_prefix = admin_prefix
        self.tool = tool or BuildTool()
        self.runner = runner or SubprocessRunner()
        self.parser = parser or BuildLogParser()
        self.timeout = timeout

    async def deploy(
        self,
        request: DeploymentRequest,
        authorization: Optional[str],
        request_url: str,
    ) -> DeploymentResult:
        """Run the pipeline for ``request`` and return the recorded result.

        Raises:
            ValidationError: A mandatory field is missing. Nothing is touched.
            ValueError: The Basic credentials cannot be decoded.
            ParseError: The build output has no usable version or timestamp;
                nothing is recorded.
        """
        validate(request)
        username, password = decode_basic_credentials(authorization)
        callback_url = derive_callback_url(request_url, self.admin_prefix)

        logger.info(f"Deploying plugin {request.plugin_id} from {request.repo_url}")
        with workspace(self.workspace_root, request.plugin_id) as path:
            spec = BuildSpec(
                repo_url=request.repo_url,
                plugin_id=request.plugin_id,
                workspace=path,
                branch=request.branch or DEFAULT_BRANCH,
                sub_dir=request.sub_dir or "",
                skip_tests=request.skip_tests,
                username=username,
                password=password,
                callback_url=callback_url,
            )
            logs = await asyncio.to_thread(self.runner.run, self.tool.argv(spec), self.timeout)

            result = DeploymentResult(
                logs=logs,
                plugin_id=request.plugin_id,
                repo_url=request.repo_url,
                branch=request.branch,
                sub_dir=request.sub_dir,
                skip_tests=request.skip_tests,
                service=request.service,
            )
            self.parser.resolve(result)

        await self.history.append(result)
        logger.info(
            f"Deployment of plugin {request.plugin_id} finished: "
            f"version={result.version} success={result.success}"
        )
        return result
