from .bitable import BitableResultSink
from .client import FeishuClient
from .credential import TenantTokenCache
from .types import CachedToken, DeliveryResult

__all__ = [
    "BitableResultSink",
    "FeishuClient",
    "TenantTokenCache",
    "CachedToken",
    "DeliveryResult",
]
