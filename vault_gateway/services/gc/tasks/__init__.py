from vault_gateway.services.gc.tasks.expired_code import ExpiredCodeGC
from vault_gateway.services.gc.tasks.expired_device import ExpiredDeviceGC

__all__ = ["ExpiredCodeGC", "ExpiredDeviceGC"]
