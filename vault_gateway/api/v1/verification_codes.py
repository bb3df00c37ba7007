"""One-time verification code endpoints.

The verify endpoint answers ``{valid}`` with 200 on success and
``{valid: false, error}`` with 400 on every kind of failure.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from vault_gateway.api.dependencies import OneTimeCodeServiceDep
from vault_gateway.errors import ValidationError

router = APIRouter()
_log = structlog.get_logger()


class VerifyCodeRequest(BaseModel):
    """Request to consume a one-time code."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str | None = Field(default=None, alias="userId")
    code: str | None = None
    email: str | None = None  # lookup fallback when user_id is absent


def _invalid(error: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"valid": False, "error": error})


@router.post("/verify")
async def verify_code(
    request: VerifyCodeRequest,
    service: OneTimeCodeServiceDep,
) -> JSONResponse:
    """Verify and consume a one-time code."""
    try:
        code = service.validate_code_format(request.code)
        valid = await service.verify(request.user_id, code, email=request.email)
    except ValidationError as e:
        return _invalid(e.message)

    if not valid:
        return _invalid("Invalid or expired code")
    return JSONResponse(content={"valid": True})
