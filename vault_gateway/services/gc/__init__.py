"""Background sweep of expired step-up records.

- Expired trusted devices (ExpiredDeviceGC)
- Expired one-time codes (ExpiredCodeGC)
"""

from vault_gateway.services.gc.base import GCResult, GCTask
from vault_gateway.services.gc.scheduler import GCScheduler

__all__ = [
    "GCResult",
    "GCScheduler",
    "GCTask",
]
