# test/test_services/test_airtable.py
import json
import httpx
import pytest
from typing import Any, Dict, List

from kisaan_pukaar.schemas.chat import AMRReport
from kisaan_pukaar.services.airtable import AirtableClient, AirtableStorage

API = "https://api.airtable.test/v0"


class FakeAirtable:
    """Minimal Airtable REST double keyed by table name."""

    def __init__(self, status: int = 200) -> None:
        self.status = status
        self.requests: List[httpx.Request] = []
        self.tables: Dict[str, List[Dict[str, Any]]] = {"amr_reports": [], "whatsapp_messages": []}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status != 200:
            return httpx.Response(self.status, json={"error": "nope"})
        parts = request.url.path.split("/")  # ["", "v0", base, table, (record)]
        table = parts[3]
        if request.method == "GET":
            return httpx.Response(200, json={"records": self.tables.get(table, [])})
        fields = json.loads(request.content)["fields"]
        if request.method == "POST":
            rec = {
                "id": f"rec{len(self.tables[table]) + 1}",
                "createdTime": "2026-01-02T03:04:05.000Z",
                "fields": fields,
            }
            self.tables[table].append(rec)
            return httpx.Response(200, json=rec)
        if request.method == "PATCH":
            return httpx.Response(200, json={"id": parts[4], "fields": fields})
        return httpx.Response(405)


def _client(fake: FakeAirtable, **kw) -> AirtableClient:
    kw.setdefault("api_key", "key123")
    kw.setdefault("base_id", "appBASE")
    return AirtableClient(api_url=API, transport=httpx.MockTransport(fake), **kw)


@pytest.mark.asyncio
async def test_probe_without_credentials_is_false_and_sends_nothing(monkeypatch):
    monkeypatch.delenv("AIRTABLE_API_KEY", raising=False)
    monkeypatch.delenv("AIRTABLE_BASE_ID", raising=False)
    fake = FakeAirtable()
    client = AirtableClient(api_url=API, transport=httpx.MockTransport(fake))

    assert await client.probe() is False
    assert fake.requests == []
    assert await client.list_records("amr_reports") == []
    await client.aclose()


@pytest.mark.asyncio
async def test_probe_uses_bearer_auth_against_reports_table():
    fake = FakeAirtable()
    client = _client(fake)

    assert await client.probe() is True
    req = fake.requests[0]
    assert req.method == "GET"
    assert req.url.path == "/v0/appBASE/amr_reports"
    assert req.headers["Authorization"] == "Bearer key123"
    await client.aclose()


@pytest.mark.asyncio
async def test_probe_http_failure_is_false():
    client = _client(FakeAirtable(status=401))
    assert await client.probe() is False
    assert client.connected is False
    await client.aclose()


@pytest.mark.asyncio
async def test_list_records_passes_filter_formula():
    fake = FakeAirtable()
    client = _client(fake)
    await client.probe()

    await client.list_records("amr_reports", "{user_id}='u1'")
    assert fake.requests[-1].url.params["filterByFormula"] == "{user_id}='u1'"
    await client.aclose()


@pytest.mark.asyncio
async def test_update_record_patches_fields():
    fake = FakeAirtable()
    client = _client(fake)
    await client.probe()

    res = await client.update_record("amr_reports", "rec9", {"status": "resolved"})
    assert res == {"id": "rec9", "fields": {"status": "resolved"}}
    assert fake.requests[-1].method == "PATCH"
    assert fake.requests[-1].url.path == "/v0/appBASE/amr_reports/rec9"
    await client.aclose()


@pytest.mark.asyncio
async def test_storage_creates_report_and_reads_it_back():
    fake = FakeAirtable()
    storage = AirtableStorage(_client(fake))
    assert await storage.probe() is True

    analysis = AMRReport(risk_level="high", recommendations=["call vet"], warnings=["w"])
    stored = await storage.create_report("u1", "sick cow", analysis, "call a vet today")

    assert stored is not None
    assert stored.id == "rec1"
    assert stored.risk_level == "high"
    assert stored.analysis == analysis
    assert stored.recommendations == "call a vet today"

    reports = await storage.get_reports_for_user("u1")
    assert [r.id for r in reports] == ["rec1"]
    assert fake.requests[-1].url.params["filterByFormula"] == "{user_id}='u1'"
    await storage.aclose()


@pytest.mark.asyncio
async def test_storage_save_message_writes_messages_table():
    fake = FakeAirtable()
    storage = AirtableStorage(_client(fake))
    await storage.probe()

    ok = await storage.save_message("+92300", "bot", "q", "a", AMRReport(risk_level="low"))
    assert ok is True
    fields = fake.tables["whatsapp_messages"][0]["fields"]
    assert fields["from"] == "+92300" and fields["to"] == "bot"
    assert json.loads(fields["amr_report"])["risk_level"] == "low"
    await storage.aclose()


@pytest.mark.asyncio
async def test_storage_skips_malformed_records():
    fake = FakeAirtable()
    fake.tables["amr_reports"] = [
        {"id": "recBad", "fields": {"user_id": "u1", "analysis": "{not json"}},
        {"id": "recOk", "createdTime": "2026-01-02T03:04:05.000Z", "fields": {
            "user_id": "u1", "message": "m", "risk_level": "low",
            "analysis": json.dumps({"type": "amr_analysis", "risk_level": "low"}),
        }},
    ]
    storage = AirtableStorage(_client(fake))
    await storage.probe()

    reports = await storage.get_reports_for_user("u1")
    assert [r.id for r in reports] == ["recOk"]
    await storage.aclose()


@pytest.mark.asyncio
async def test_storage_not_connected_returns_benign_values():
    fake = FakeAirtable()
    storage = AirtableStorage(_client(fake))

    assert storage.is_connected is False
    assert await storage.save_message("a", "bot", "q", "r") is False
    assert await storage.create_report("u", "m", AMRReport(risk_level="low"), "r") is None
    assert await storage.get_reports_for_user("u") == []
    assert fake.requests == []
    await storage.aclose()
