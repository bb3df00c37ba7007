"""API v1 router."""

from fastapi import APIRouter

from vault_gateway.api.v1.trusted_devices import router as trusted_devices_router
from vault_gateway.api.v1.verification_codes import router as verification_codes_router

router = APIRouter()

# Include sub-routers
router.include_router(trusted_devices_router, prefix="/trusted-devices", tags=["trusted-devices"])
router.include_router(
    verification_codes_router, prefix="/verification-codes", tags=["verification-codes"]
)
