import threading
import time
from typing import Callable, Dict, Optional

from ..errors import CredentialError, DeliveryTransportError, RemoteApiError
from ..logger import logger
from .client import FeishuClient
from .types import CachedToken

TOKEN_PATH = "/auth/v3/tenant_access_token/internal"
DEFAULT_EXPIRE = 7200
# 提前5分钟过期，避免请求途中 token 失效
SAFETY_MARGIN = 300


class TenantTokenCache:
    """Thread-safe cache of Feishu tenant_access_token keyed by app id.

    One instance is shared by every pipeline run in the process. Concurrent
    misses for the same app id are collapsed into one issuance call by a
    per-app lock; cached tokens are immutable and replaced on refresh.
    """

    def __init__(
        self,
        client: Optional[FeishuClient] = None,
        safety_margin: int = SAFETY_MARGIN,
        clock: Callable[[], float] = time.time,
    ):
        self.client = client or FeishuClient()
        self.safety_margin = safety_margin
        self.clock = clock
        self._tokens: Dict[str, CachedToken] = {}
        self._app_locks: Dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    def get_token(self, app_id: str, app_secret: str) -> str:
        """Returns a valid tenant_access_token, fetching a new one when needed.

        Raises:
            CredentialError: If app id / secret are blank or issuance fails.
        """
        if not app_id or not app_id.strip() or not app_secret or not app_secret.strip():
            raise CredentialError("App ID and App Secret must not be blank")

        cached = self._lookup(app_id)
        if cached is not None:
            logger.debug("使用缓存的 tenant_access_token")
            return cached.value

        with self._lock_for(app_id):
            # another caller may have refreshed while we waited
            cached = self._lookup(app_id)
            if cached is not None:
                return cached.value
            return self._issue(app_id, app_secret).value

    def _lookup(self, app_id: str) -> Optional[CachedToken]:
        with self._lock:
            cached = self._tokens.get(app_id)
        if cached is not None and self.clock() < cached.expires_at:
            return cached
        return None

    def _lock_for(self, app_id: str) -> threading.Lock:
        with self._lock:
            return self._app_locks.setdefault(app_id, threading.Lock())

    def _issue(self, app_id: str, app_secret: str) -> CachedToken:
        issued_at = self.clock()
        try:
            data = self.client.post(TOKEN_PATH, None, {"app_id": app_id, "app_secret": app_secret})
        except (RemoteApiError, DeliveryTransportError) as e:
            logger.error(f"✗ 获取 tenant_access_token 失败: {e}")
            raise CredentialError(f"failed to get tenant_access_token: {e}") from e

        value = data.get("tenant_access_token")
        if not value or not isinstance(value, str):
            raise CredentialError("tenant_access_token missing in response")

        try:
            expire = int(data.get("expire") or DEFAULT_EXPIRE)
        except (TypeError, ValueError) as e:
            raise CredentialError(f"invalid expire in token response: {data.get('expire')!r}") from e

        token = CachedToken(value=value, expires_at=issued_at + expire - self.safety_margin)
        with self._lock:
            self._tokens[app_id] = token

        logger.info(f"✓ 获取 tenant_access_token 成功，过期时间: {expire} 秒")
        return token
