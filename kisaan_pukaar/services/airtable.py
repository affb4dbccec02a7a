# kisaan_pukaar/services/airtable.py
from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from kisaan_pukaar import config
from kisaan_pukaar.schemas.chat import AMRReport, StoredReport
from kisaan_pukaar.utils.logger import get_logger

log = get_logger(__name__)


class AirtableError(RuntimeError):
    pass


class AirtableClient:
    """Thin REST client for one Airtable base (bearer-token auth).

    Every call returns a benign value on failure ([] or None) and logs it;
    callers never see an exception from here.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_id: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key or os.getenv("AIRTABLE_API_KEY", "")
        self.base_id = base_id or os.getenv("AIRTABLE_BASE_ID", "")
        self.api_url = (api_url or config.AIRTABLE_API_URL).rstrip("/")
        self.connected = False

        self._client = httpx.AsyncClient(
            base_url=f"{self.api_url}/{self.base_id}",
            timeout=timeout,
            transport=transport,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.base_id)

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            res = await self._client.request(method, path, headers=self._headers(), **kwargs)
            res.raise_for_status()
            return res.json()
        except httpx.HTTPStatusError as e:
            raise AirtableError(f"HTTP {e.response.status_code}: {e.response.text[:200]}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise AirtableError(str(e)) from e

    async def probe(self, table: str = config.AIRTABLE_REPORTS_TABLE) -> bool:
        """Connectivity check: a list call against ``table`` must succeed."""
        if not self.configured:
            log.warning("Airtable credentials not configured")
            self.connected = False
            return False
        try:
            await self._request("GET", f"/{table}")
            self.connected = True
        except AirtableError as e:
            log.error("Airtable connection failed: %s", e)
            self.connected = False
        return self.connected

    async def list_records(self, table: str, filter_formula: Optional[str] = None) -> List[Dict[str, Any]]:
        if not self.connected:
            return []
        params = {"filterByFormula": filter_formula} if filter_formula else None
        try:
            data = await self._request("GET", f"/{table}", params=params)
        except AirtableError as e:
            log.error("Error getting Airtable records from %s: %s", table, e)
            return []
        return list(data.get("records") or [])

    async def create_record(self, table: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        if not self.connected:
            return None
        try:
            return await self._request("POST", f"/{table}", json={"fields": fields})
        except AirtableError as e:
            log.error("Error creating Airtable record in %s: %s", table, e)
            return None

    async def update_record(self, table: str, record_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        if not self.connected:
            return None
        try:
            return await self._request("PATCH", f"/{table}/{record_id}", json={"fields": fields})
        except AirtableError as e:
            log.error("Error updating Airtable record %s/%s: %s", table, record_id, e)
            return None


def _quote_formula(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def _record_to_report(record: Dict[str, Any]) -> Optional[StoredReport]:
    fields = record.get("fields") or {}
    try:
        analysis = fields.get("analysis")
        if isinstance(analysis, str):
            analysis = json.loads(analysis)
        extra: Dict[str, Any] = {}
        created = record.get("createdTime") or fields.get("created_at")
        if created:
            extra["created_at"] = created
        return StoredReport(
            id=record["id"],
            user_id=fields.get("user_id", config.ANONYMOUS_USER),
            message=fields.get("message", ""),
            analysis=analysis,
            recommendations=fields.get("recommendations", ""),
            risk_level=fields.get("risk_level") or (analysis or {}).get("risk_level"),
            status=fields.get("status", "active"),
            **extra,
        )
    except (KeyError, ValueError, ValidationError, AttributeError) as e:
        log.warning("skipping malformed Airtable report record %s: %s", record.get("id"), e)
        return None


class AirtableStorage:
    """Storage collaborator backed by the ``amr_reports`` / ``whatsapp_messages`` tables."""

    def __init__(self, client: Optional[AirtableClient] = None) -> None:
        self.client = client or AirtableClient()

    @property
    def is_connected(self) -> bool:
        return self.client.connected

    async def probe(self) -> bool:
        return await self.client.probe(config.AIRTABLE_REPORTS_TABLE)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def save_message(
        self,
        from_: str,
        to: str,
        message: str,
        response: str,
        report: Optional[AMRReport] = None,
    ) -> bool:
        fields = {
            "from": from_,
            "to": to,
            "message": message,
            "response": response,
            "amr_report": report.model_dump_json() if report else "",
        }
        return await self.client.create_record(config.AIRTABLE_MESSAGES_TABLE, fields) is not None

    async def create_report(
        self,
        user_id: str,
        message: str,
        analysis: AMRReport,
        recommendations: str,
    ) -> Optional[StoredReport]:
        fields = {
            "user_id": user_id,
            "message": message,
            "analysis": analysis.model_dump_json(),
            "recommendations": recommendations,
            "risk_level": analysis.risk_level,
            "status": "active",
        }
        record = await self.client.create_record(config.AIRTABLE_REPORTS_TABLE, fields)
        if record is None:
            return None
        return _record_to_report(record)

    async def get_reports_for_user(self, user_id: str) -> list[StoredReport]:
        formula = "{user_id}=" + _quote_formula(user_id)
        records = await self.client.list_records(config.AIRTABLE_REPORTS_TABLE, formula)
        reports = [_record_to_report(r) for r in records]
        return [r for r in reports if r is not None]
