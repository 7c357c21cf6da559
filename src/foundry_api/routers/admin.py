"""Plugin administration API.

Mounted under the admin prefix (``/foundry/admin`` by default):

    GET     /plugins                  list plugins                  admin
    GET     /cicd/result...           deployment history            -
    GET     /...                      bundled admin UI assets       -
    POST    /auth                     credential check (201)        admin
    POST    /cicd                     build and deploy from git     admin
    PATCH   /plugins/{id}/{version}   enable / disable              admin
    DELETE  /plugins/{id}/{version}   delete a plugin version       admin
    OPTIONS /...                      CORS preflight                -

Admin routes resolve the caller before anything else; a non-admin caller
gets a 401 and the handler does not run.  Unmapped POST/PUT/PATCH paths
answer 404.  Verbs outside the table answer 400 through
``foundry_api.main.unsupported_method_handler``, registered for 405.
"""

from __future__ import annotations

import json
import re
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pydantic import ValidationError as PayloadError

from foundry.auth import ANONYMOUS, User, ensure_admin
from foundry.errors import MalformedRequestError, UnmappedRouteError
from foundry.models import DeploymentRequest, StatePatch

router = APIRouter(tags=["admin"])

PLUGIN_VERSION_PATH = re.compile(r"^/?plugins/(\d+)/(.+)$")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,HEAD,OPTIONS,POST,PUT,PATCH,DELETE",
    "Access-Control-Allow-Headers": (
        "Access-Control-Allow-Headers, Origin,Accept, X-Requested-With, Authorization, "
        "Content-Type, Access-Control-Request-Method, Access-Control-Request-Headers"
    ),
}


def current_user(request: Request) -> User:
    """Caller identity from the Authorization header; anonymous if unresolved."""
    provider = getattr(request.app.state, "identity", None)
    if provider is None:
        return ANONYMOUS
    return provider.authenticate(request.headers.get("Authorization"))


def admin_user(user: User = Depends(current_user)) -> User:
    """Dependency that admits only admins (401 otherwise)."""
    return ensure_admin(user)


def _parse_plugin_path(path: str) -> Optional[tuple[int, float]]:
    """(plugin_id, version) from ``plugins/<id>/<version>``, or None if no match.

    Raises:
        MalformedRequestError: The version part is not a number.
    """
    match = PLUGIN_VERSION_PATH.match(path)
    if match is None:
        return None
    try:
        return int(match.group(1)), float(match.group(2))
    except ValueError:
        raise MalformedRequestError(f"Invalid plugin version: {match.group(2)!r}") from None


def _unmapped(request: Request) -> UnmappedRouteError:
    return UnmappedRouteError(
        f"No functionality is mapped to this endpoint yet: {request.url.path}"
    )


async def _read_model(request: Request, model: type[BaseModel]):
    """Validate the JSON body against ``model``; bad payloads answer 400."""
    try:
        return model.model_validate(await _json_body(request))
    except PayloadError as e:
        raise MalformedRequestError(f"Invalid request body: {e}") from e


async def _json_body(request: Request) -> dict:
    raw = await request.body()
    if not raw:
        return {}
    try:
        body = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedRequestError(f"Request body is not valid JSON: {e}") from e
    if not isinstance(body, dict):
        raise MalformedRequestError("Request body must be a JSON object")
    return body


# ==================
# GET
# ==================

@router.get("/plugins")
async def list_plugins(request: Request, user: User = Depends(admin_user)):
    """All plugin versions, ordered by id then version text."""
    plugins = await request.app.state.controller.list_plugins()
    return [p.to_json_dict() for p in plugins]


@router.get("/cicd/result{suffix:path}")
async def deployment_history(request: Request):
    """Past deployments, newest first. Store failures answer 400."""
    records = await request.app.state.history.list()
    return [r.to_json_dict() for r in records]


@router.get("")
async def admin_index(request: Request):
    return request.app.state.assets.load("")


@router.get("/{path:path}")
async def admin_asset(request: Request, path: str):
    """Bundled admin UI; ``/`` serves index.html."""
    return request.app.state.assets.load(path)


# ==================
# POST / PUT
# ==================

@router.post("/auth", status_code=201)
async def check_auth(user: User = Depends(admin_user)):
    """Succeeds only for admins; lets the UI validate credentials."""
    return Response(status_code=201)


@router.post("/cicd", status_code=201)
async def deploy(request: Request, user: User = Depends(admin_user)):
    """Clone, build and deploy a plugin, then record the outcome."""
    body = await _read_model(request, DeploymentRequest)
    result = await request.app.state.pipeline.deploy(
        body,
        authorization=request.headers.get("Authorization"),
        request_url=str(request.url),
    )
    return JSONResponse(status_code=201, content=result.to_json_dict())


@router.api_route("/{path:path}", methods=["POST", "PUT"])
async def unmapped_write(request: Request, user: User = Depends(admin_user)):
    raise _unmapped(request)


# ==================
# PATCH / DELETE
# ==================

@router.patch("/{path:path}")
async def change_state(request: Request, path: str, user: User = Depends(admin_user)):
    """Enable or disable a plugin version.

    200 with the refreshed plugin when the state changed, 204 when it was
    already in the requested state, 404 when the version does not exist.
    """
    target = _parse_plugin_path(path)
    if target is None:
        raise _unmapped(request)
    plugin_id, version = target

    patch = await _read_model(request, StatePatch)
    summary = await request.app.state.controller.change_state(
        plugin_id, version, patch.enabled, user,
    )
    if summary is None:
        return Response(status_code=204)
    return summary.to_json_dict()


@router.delete("/{path:path}")
async def delete_plugin_version(request: Request, path: str, user: User = Depends(admin_user)):
    """Delete a plugin version: 204 if removed, 404 if absent."""
    target = _parse_plugin_path(path)
    if target is None:
        raise MalformedRequestError(f"Not a plugin version path: {request.url.path}")
    plugin_id, version = target

    deleted = await request.app.state.controller.delete_version(plugin_id, version, user)
    return Response(status_code=204 if deleted else 404)


# ==================
# OPTIONS
# ==================

@router.options("/{path:path}")
async def preflight():
    """CORS preflight; always succeeds, no authorization."""
    return Response(status_code=200, headers=CORS_HEADERS)

