"""
BitableResultSink - writes analysis results back to a Feishu bitable record.

Field values are wrapped in the bitable value types:
- numbers: {"number": 1}
- everything else: {"text": "..."}
"""

from typing import Any, Dict, Optional

from ..config import feishu_config_complete
from ..errors import CredentialError, DeliveryTransportError, RemoteApiError
from ..logger import logger
from .client import FeishuClient
from .credential import TenantTokenCache
from .types import DeliveryResult, FieldUpdate, FieldValue

RECORD_PATH = "/bitable/v1/apps/{app_token}/tables/{table_id}/records/{record_id}"
FAILURE_PREFIX = "分析失败: "


def to_bitable_value(value: Optional[FieldValue]) -> Optional[Dict[str, Any]]:
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return {"number": value}
    return {"text": str(value)}


class BitableResultSink:
    def __init__(
        self,
        app_id: str,
        app_secret: str,
        app_token: str,
        table_id: str,
        field_mapping: Dict[str, str],
        token_cache: TenantTokenCache,
        client: Optional[FeishuClient] = None,
    ):
        """
        Args:
            app_id: Feishu app id, also the token cache key.
            app_secret: Feishu app secret.
            app_token: Bitable app token.
            table_id: Bitable table id.
            field_mapping: Logical field ("report", "error") -> bitable field name.
                A blank name means the field is not written.
            token_cache: Shared tenant_access_token cache.
            client: Feishu HTTP client, defaults to the token cache's client.
        """
        self.app_id = app_id
        self.app_secret = app_secret
        self.app_token = app_token
        self.table_id = table_id
        self.field_mapping = field_mapping
        self.token_cache = token_cache
        self.client = client or token_cache.client

    @classmethod
    def from_config(
        cls,
        feishu_config: Dict[str, Any],
        token_cache: TenantTokenCache,
        client: Optional[FeishuClient] = None,
    ) -> "BitableResultSink":
        return cls(
            app_id=feishu_config.get("app_id", ""),
            app_secret=feishu_config.get("app_secret", ""),
            app_token=feishu_config.get("app_token", ""),
            table_id=feishu_config.get("table_id", ""),
            field_mapping=dict(feishu_config.get("field_mapping") or {}),
            token_cache=token_cache,
            client=client,
        )

    @property
    def configured(self) -> bool:
        return feishu_config_complete(
            {
                "app_id": self.app_id,
                "app_secret": self.app_secret,
                "app_token": self.app_token,
                "table_id": self.table_id,
            }
        )

    def deliver_success(self, record_id: str, report: str) -> DeliveryResult:
        return self._deliver(record_id, {"report": report})

    def deliver_failure(self, record_id: str, reason: str) -> DeliveryResult:
        fields: FieldUpdate = {"report": FAILURE_PREFIX + reason}
        if self.field_mapping.get("error"):
            fields["error"] = reason
        return self._deliver(record_id, fields)

    def build_fields(self, fields: FieldUpdate) -> Dict[str, Any]:
        """Maps logical field names to bitable field names and typed values."""
        remote_fields: Dict[str, Any] = {}
        for logical_name, value in fields.items():
            remote_name = self.field_mapping.get(logical_name)
            if not remote_name:
                continue
            remote_fields[remote_name] = to_bitable_value(value)
        return remote_fields

    def _deliver(self, record_id: str, fields: FieldUpdate) -> DeliveryResult:
        if not record_id or not record_id.strip():
            logger.warning("记录ID为空，跳过更新飞书多维表格")
            return DeliveryResult(delivered=False, skipped=True, message="record id is blank")

        if not self.configured:
            logger.warning("飞书多维表格配置不完整，跳过更新")
            return DeliveryResult(delivered=False, skipped=True, message="bitable config incomplete")

        remote_fields = self.build_fields(fields)
        if not remote_fields:
            logger.warning(f"没有要更新的字段: recordId={record_id}")
            return DeliveryResult(delivered=False, skipped=True, message="no mapped fields to update")

        path = RECORD_PATH.format(app_token=self.app_token, table_id=self.table_id, record_id=record_id)
        try:
            token = self.token_cache.get_token(self.app_id, self.app_secret)
            self.client.put(path, token, {"fields": remote_fields})
        except RemoteApiError as e:
            logger.error(f"✗ 更新多维表格记录失败: recordId={record_id}, code={e.code}, msg={e.message}")
            return DeliveryResult(delivered=False, message=f"remote api error: code={e.code}, msg={e.message}")
        except (CredentialError, DeliveryTransportError) as e:
            logger.error(f"✗ 更新多维表格记录失败: recordId={record_id}, {e}")
            return DeliveryResult(delivered=False, message=str(e))

        logger.info(f"✓ 更新多维表格记录成功: recordId={record_id}")
        return DeliveryResult(delivered=True, message="record updated")
