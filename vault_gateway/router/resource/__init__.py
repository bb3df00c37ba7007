from vault_gateway.router.resource.catalog import (
    API_VERSION,
    Resource,
    Route,
    endpoint_for,
    parse_route,
)
from vault_gateway.router.resource.resource import (
    ListParams,
    Pagination,
    ResourceRouter,
    clamp_limit,
)

__all__ = [
    "API_VERSION",
    "ListParams",
    "Pagination",
    "Resource",
    "ResourceRouter",
    "Route",
    "clamp_limit",
    "endpoint_for",
    "parse_route",
]
