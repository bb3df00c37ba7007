"""SQLModel data models."""

from vault_gateway.models.api_key import ApiKey
from vault_gateway.models.lifecycle import TokenState
from vault_gateway.models.one_time_code import OneTimeCode
from vault_gateway.models.trusted_device import TrustedDevice

__all__ = [
    "ApiKey",
    "OneTimeCode",
    "TokenState",
    "TrustedDevice",
]
