"""FastAPI dependencies for the vault gateway.

Provides dependency injection for:
- Database sessions
- Services (secret validation, resource routing, step-up verification)
- Bearer identity authentication
"""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from vault_gateway.config import get_settings
from vault_gateway.db.session import get_session_dependency
from vault_gateway.router.resource import ResourceRouter
from vault_gateway.services.api_key import SecretValidator
from vault_gateway.services.identity import authenticate_user
from vault_gateway.services.one_time_code import OneTimeCodeService
from vault_gateway.services.trusted_device import TrustedDeviceService

logger = structlog.get_logger()

SessionDep = Annotated[AsyncSession, Depends(get_session_dependency)]


async def get_secret_validator(session: SessionDep) -> SecretValidator:
    return SecretValidator(db_session=session)


async def get_resource_router(session: SessionDep) -> ResourceRouter:
    return ResourceRouter(db_session=session)


async def get_trusted_device_service(session: SessionDep) -> TrustedDeviceService:
    return TrustedDeviceService(db_session=session, config=get_settings().step_up)


async def get_one_time_code_service(session: SessionDep) -> OneTimeCodeService:
    return OneTimeCodeService(db_session=session, config=get_settings().step_up)


def authenticate(request: Request) -> str:
    """Authenticate a step-up request and return the user id.

    The bearer token is a JWT from the identity provider; ``sub`` is the
    user id.

    Raises:
        UnauthorizedError: Missing, malformed or invalid bearer token
    """
    user_id = authenticate_user(
        request.headers.get("Authorization"),
        get_settings().identity,
    )
    logger.debug("auth.success", source="bearer", user_id=user_id)
    return user_id


# Type aliases for cleaner dependency injection
SecretValidatorDep = Annotated[SecretValidator, Depends(get_secret_validator)]
ResourceRouterDep = Annotated[ResourceRouter, Depends(get_resource_router)]
TrustedDeviceServiceDep = Annotated[TrustedDeviceService, Depends(get_trusted_device_service)]
OneTimeCodeServiceDep = Annotated[OneTimeCodeService, Depends(get_one_time_code_service)]
UserDep = Annotated[str, Depends(authenticate)]
