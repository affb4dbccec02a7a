# test/test_services/test_repo.py
import pytest

from kisaan_pukaar.schemas.chat import AMRReport
from kisaan_pukaar.services.repo import LocalRepo


async def _connected_repo() -> LocalRepo:
    repo = LocalRepo("sqlite+aiosqlite:///:memory:")
    assert await repo.probe() is True
    return repo


@pytest.mark.asyncio
async def test_not_connected_repo_is_a_noop():
    repo = LocalRepo("sqlite+aiosqlite:///:memory:")
    try:
        assert repo.is_connected is False
        assert await repo.save_message("a", "bot", "q", "r") is False
        assert await repo.create_report("u", "m", AMRReport(risk_level="low"), "r") is None
        assert await repo.get_reports_for_user("u") == []
        assert await repo.get_user_profile("u") is None
        assert await repo.get_expert_advisory() == []
        assert await repo.get_analytics() is None
    finally:
        await repo.disconnect()


@pytest.mark.asyncio
async def test_create_and_list_reports_isolated_per_user():
    repo = await _connected_repo()
    try:
        a1 = await repo.create_report("u1", "cow fever", AMRReport(risk_level="high", warnings=["w"]), "call vet")
        a2 = await repo.create_report("u1", "hen cough", AMRReport(risk_level="low"), "keep warm")
        await repo.create_report("u2", "goat", AMRReport(risk_level="medium"), "rest")

        assert a1.id.startswith("report-") and a1.id != a2.id
        assert a1.risk_level == "high"
        assert a1.analysis.warnings == ["w"]
        assert a1.status == "active"

        reports = await repo.get_reports_for_user("u1")
        assert [r.message for r in reports] == ["cow fever", "hen cough"]
        assert [r.risk_level for r in reports] == ["high", "low"]
        assert await repo.get_reports_for_user("nobody") == []
    finally:
        await repo.disconnect()


@pytest.mark.asyncio
async def test_save_message_and_profile_defaults():
    repo = await _connected_repo()
    try:
        assert await repo.save_message("+92300", "bot", "q", "a", AMRReport(risk_level="medium")) is True

        profile = await repo.get_user_profile("current-user")
        assert profile.id == "current-user"
        assert profile.category == "farmer"
        assert profile.language == "ur"
        # second call returns the same stored profile
        again = await repo.get_user_profile("current-user")
        assert again == profile
    finally:
        await repo.disconnect()


@pytest.mark.asyncio
async def test_analytics_outcomes_and_advisory():
    repo = await _connected_repo()
    try:
        await repo.create_report("u1", "m1", AMRReport(risk_level="high"), "r")
        await repo.create_report("u1", "m2", AMRReport(risk_level="low"), "r")
        await repo.get_user_profile("u1")
        assert await repo.track_treatment_outcome("u1", "oxytetracycline", "recovered", 5) is True

        stats = await repo.get_analytics()
        assert stats["total_reports"] == 2
        assert stats["high_risk_cases"] == 1
        assert stats["active_users"] == 1
        assert stats["resolved_cases"] == 0
        assert "last_updated" in stats

        advisory = await repo.get_expert_advisory()
        assert [a.id for a in advisory] == ["advisory-1", "advisory-2"]
    finally:
        await repo.disconnect()


@pytest.mark.asyncio
async def test_disconnect_stops_persistence():
    repo = await _connected_repo()
    await repo.disconnect()
    assert repo.is_connected is False
    assert await repo.get_reports_for_user("u1") == []
