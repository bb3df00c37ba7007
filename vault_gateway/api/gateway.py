"""Read-only resource gateway endpoints.

GET /{prefix}/v1/{resource}       list rows
GET /{prefix}/v1/{resource}/{id}  single row
anything else under the prefix    discovery document

A bare OPTIONS is answered with an empty 200. Any verb other than GET or HEAD
is answered with 405 before the API key is even looked at.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response

from vault_gateway.api.dependencies import ResourceRouterDep, SecretValidatorDep
from vault_gateway.config import GatewayConfig, get_settings
from vault_gateway.errors import MethodNotAllowedError, ValidationError
from vault_gateway.router.resource import (
    API_VERSION,
    ListParams,
    Resource,
    endpoint_for,
    parse_route,
)

logger = structlog.get_logger()

router = APIRouter()

API_KEY_HEADER = "X-API-Key"
# Bound of a signed 64-bit SQL integer
_MAX_SQL_INT = 2**63 - 1
_ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def discovery_document(config: GatewayConfig) -> dict[str, Any]:
    """List every routable resource with its endpoint."""
    return {
        "api": config.api_name,
        "version": API_VERSION,
        "resources": [
            {"name": r.value, "endpoint": endpoint_for(r, config.route_prefix)}
            for r in Resource
        ],
    }


def _int_param(request: Request, name: str) -> int | None:
    raw = request.query_params.get(name)
    if raw is None or raw == "":
        return None
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(
            f"{name} must be an integer",
            details={name: raw},
        ) from None
    if abs(value) > _MAX_SQL_INT:
        raise ValidationError(
            f"{name} is out of range",
            details={name: raw},
        )
    return value


def _list_params(request: Request, config: GatewayConfig) -> ListParams:
    query = request.query_params
    return ListParams.build(
        limit=_int_param(request, "limit"),
        offset=_int_param(request, "offset"),
        order_by=query.get("order_by"),
        order=query.get("order"),
        entity_id=query.get("entity_id"),
        default_limit=config.default_limit,
        max_limit=config.max_limit,
    )


@router.api_route("", methods=_ALL_METHODS, include_in_schema=False)
@router.api_route("/{path:path}", methods=_ALL_METHODS, include_in_schema=False)
async def gateway(
    request: Request,
    validator: SecretValidatorDep,
    resource_router: ResourceRouterDep,
) -> Response:
    """Admit by API key, then dispatch to list / get / discovery."""
    if request.method == "OPTIONS":
        return Response(status_code=200)
    if request.method not in ("GET", "HEAD"):
        raise MethodNotAllowedError(details={"method": request.method})

    api_key = await validator.validate(request.headers.get(API_KEY_HEADER))

    config = get_settings().gateway
    route = parse_route(request.url.path, config.route_prefix)
    if route is None:
        return JSONResponse(content=discovery_document(config))

    log = logger.bind(resource=route.resource.value, key_prefix=api_key.key_prefix)

    if route.resource_id is not None:
        row = await resource_router.get(route.resource, route.resource_id)
        log.debug("gateway.get", resource_id=route.resource_id)
        return JSONResponse(content=jsonable_encoder({"data": row}))

    params = _list_params(request, config)
    rows, pagination = await resource_router.list(route.resource, params)
    return JSONResponse(
        content=jsonable_encoder({"data": rows, "pagination": pagination.to_dict()})
    )
