"""Gateway services."""

from vault_gateway.services.api_key import (
    ApiKeyRepository,
    ApiKeyService,
    SecretValidator,
    digest,
)
from vault_gateway.services.one_time_code import OneTimeCodeService
from vault_gateway.services.trusted_device import TrustedDeviceService

__all__ = [
    "ApiKeyRepository",
    "ApiKeyService",
    "OneTimeCodeService",
    "SecretValidator",
    "TrustedDeviceService",
    "digest",
]
