"""
Feishu OpenAPI helper: auth headers, URL building and unified response checks.

Every Feishu response carries a business ``code``; 0 means success. A non-zero
code is raised as RemoteApiError, anything that prevents reading a response
(network, HTTP layer, invalid JSON) as DeliveryTransportError.
"""

from typing import Any, Dict, Optional

import requests

from ..errors import DeliveryTransportError, RemoteApiError
from ..logger import logger

FEISHU_API_BASE = "https://open.feishu.cn/open-apis"


class FeishuClient:
    def __init__(self, base_url: str = FEISHU_API_BASE, timeout: float = 30):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def build_url(self, path: str) -> str:
        if not path or not path.strip():
            raise ValueError("API path must not be empty")
        if not path.startswith("/"):
            path = "/" + path
        return self.base_url + path

    @staticmethod
    def build_headers(token: Optional[str] = None) -> Dict[str, str]:
        headers = {"Content-Type": "application/json; charset=utf-8"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def get(self, path: str, token: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._execute("GET", path, token, params=params or {})

    def post(self, path: str, token: Optional[str], body: Dict[str, Any]) -> Dict[str, Any]:
        return self._execute("POST", path, token, json=body)

    def put(self, path: str, token: str, body: Dict[str, Any]) -> Dict[str, Any]:
        return self._execute("PUT", path, token, json=body)

    def _execute(self, method: str, path: str, token: Optional[str], **kwargs) -> Dict[str, Any]:
        url = self.build_url(path)
        logger.debug(f"发送请求: {method} {url}")
        try:
            response = requests.request(
                method,
                url,
                headers=self.build_headers(token),
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as e:
            raise DeliveryTransportError(f"request to Feishu failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise DeliveryTransportError(
                f"invalid JSON from Feishu (HTTP {response.status_code}): {response.text[:200]}"
            ) from e

        if not isinstance(data, dict):
            raise DeliveryTransportError(
                f"unexpected response body from Feishu (HTTP {response.status_code}): {response.text[:200]}"
            )

        logger.debug(f"响应状态: {response.status_code}, code={data.get('code')}")
        code = data.get("code")
        if code != 0:
            message = data.get("msg") or "unknown error"
            logger.warning(f"⚠ 飞书 API 调用失败: code={code}, msg={message}")
            raise RemoteApiError(code, message)
        return data
