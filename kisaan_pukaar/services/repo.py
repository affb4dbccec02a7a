# kisaan_pukaar/services/repo.py
from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from kisaan_pukaar import config
from kisaan_pukaar.db.models import MessageLog, ReportRecord, TreatmentOutcome, UserProfileRecord
from kisaan_pukaar.db.session import init_db, make_engine, make_session_factory
from kisaan_pukaar.schemas.chat import AMRReport, StoredReport
from kisaan_pukaar.schemas.profile import Advisory, UserProfile
from kisaan_pukaar.utils.logger import get_logger

log = get_logger(__name__)

DEFAULT_PROFILE = UserProfile(
    id=config.DEFAULT_PROFILE_ID,
    name="کسان احمد",
    phone="+923001234567",
    category="farmer",
    language="ur",
    location="لاہور، پاکستان",
)

EXPERT_ADVISORY = [
    Advisory(
        id="advisory-1",
        title="اینٹی بایوٹک کے صحیح استعمال کی ہدایات",
        content="ہمیشہ ماہر ڈاکٹر کے مشورے سے اینٹی بایوٹک استعمال کریں۔",
        category="antibiotic_usage",
        priority="high",
    ),
    Advisory(
        id="advisory-2",
        title="مویشیوں میں AMR سے بچاؤ",
        content="مویشیوں کو صحت مند ماحول فراہم کریں اور باقاعدگی چیک اپ کروائیں۔",
        category="livestock_health",
        priority="medium",
    ),
]


def _to_stored(row: ReportRecord) -> StoredReport:
    return StoredReport(
        id=row.id,
        user_id=row.user_id,
        message=row.message,
        analysis=AMRReport.model_validate(row.analysis_json),
        recommendations=row.recommendations,
        risk_level=row.risk_level,
        status=row.status,
        created_at=row.created_at,
    )


class LocalRepo:
    """
    In-process storage collaborator on top of SQLModel/aiosqlite.

    With the default in-memory URL nothing outlives the process. Every public
    call is a no-op (False / None / []) until probe() has succeeded, and
    database errors are logged and turned into the same benign values.

    Composed writes:
        async with repo.transaction() as s:
            s.add(...)
            # any error -> full rollback
    """

    def __init__(self, url: Optional[str] = None, *, engine: Optional[AsyncEngine] = None):
        self._engine = engine or make_engine(url)
        self._session_factory = make_session_factory(self._engine)
        self._connected = False

    # ---------------------------
    # Connection
    # ---------------------------
    @property
    def is_connected(self) -> bool:
        return self._connected

    async def probe(self) -> bool:
        try:
            await init_db(self._engine)
            self._connected = True
            log.info("local store connected")
        except SQLAlchemyError as e:
            log.error("local store connection failed: %s", e)
            self._connected = False
        return self._connected

    async def disconnect(self) -> None:
        self._connected = False
        await self._engine.dispose()
        log.info("local store disconnected")

    aclose = disconnect

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Yield a session with an active transaction. Rollbacks on exception."""
        async with self._session_factory() as session:
            async with session.begin():
                yield session

    # ---------------------------
    # Profiles
    # ---------------------------
    async def get_user_profile(self, user_id: str) -> Optional[UserProfile]:
        """Return the stored profile, creating the default one on first access."""
        if not self._connected:
            return None
        try:
            async with self.transaction() as s:
                row = await s.get(UserProfileRecord, user_id)
                if row is None:
                    row = UserProfileRecord(**DEFAULT_PROFILE.model_dump(exclude={"id"}), id=user_id)
                    s.add(row)
                    await s.flush()
                return UserProfile(
                    id=row.id,
                    name=row.name,
                    phone=row.phone,
                    category=row.category,
                    language=row.language,
                    location=row.location,
                )
        except SQLAlchemyError as e:
            log.error("Error getting user profile %s: %s", user_id, e)
            return None

    # ---------------------------
    # Messages
    # ---------------------------
    async def save_message(
        self,
        from_: str,
        to: str,
        message: str,
        response: str,
        report: Optional[AMRReport] = None,
    ) -> bool:
        if not self._connected:
            return False
        try:
            async with self.transaction() as s:
                s.add(MessageLog(
                    sender=from_,
                    recipient=to,
                    message=message,
                    response=response,
                    report_json=report.model_dump() if report else None,
                ))
            log.debug("message saved from=%s", from_)
            return True
        except SQLAlchemyError as e:
            log.error("Error saving message: %s", e)
            return False

    # ---------------------------
    # Reports
    # ---------------------------
    async def create_report(
        self,
        user_id: str,
        message: str,
        analysis: AMRReport,
        recommendations: str,
    ) -> Optional[StoredReport]:
        if not self._connected:
            return None
        try:
            async with self.transaction() as s:
                row = ReportRecord(
                    user_id=user_id,
                    message=message,
                    analysis_json=analysis.model_dump(),
                    recommendations=recommendations,
                    risk_level=analysis.risk_level,
                )
                s.add(row)
                await s.flush()
                report = _to_stored(row)
            log.info("AMR report created id=%s risk=%s", report.id, report.risk_level)
            return report
        except SQLAlchemyError as e:
            log.error("Error creating AMR report: %s", e)
            return None

    async def get_reports_for_user(self, user_id: str) -> list[StoredReport]:
        if not self._connected:
            return []
        try:
            async with self._session_factory() as s:
                stmt = (
                    select(ReportRecord)
                    .where(ReportRecord.user_id == user_id)
                    .order_by(ReportRecord.created_at.asc())
                )
                result = await s.execute(stmt)
                return [_to_stored(r) for r in result.scalars().all()]
        except SQLAlchemyError as e:
            log.error("Error getting AMR reports for %s: %s", user_id, e)
            return []

    # ---------------------------
    # Advisory / outcomes / analytics
    # ---------------------------
    async def get_expert_advisory(self) -> list[Advisory]:
        if not self._connected:
            return []
        return list(EXPERT_ADVISORY)

    async def track_treatment_outcome(self, user_id: str, treatment: str, outcome: str, duration: int) -> bool:
        if not self._connected:
            return False
        try:
            async with self.transaction() as s:
                s.add(TreatmentOutcome(user_id=user_id, treatment=treatment, outcome=outcome, duration=duration))
            return True
        except SQLAlchemyError as e:
            log.error("Error tracking treatment outcome: %s", e)
            return False

    async def get_analytics(self) -> Optional[dict[str, Any]]:
        if not self._connected:
            return None
        try:
            async with self._session_factory() as s:
                total = await s.scalar(select(func.count()).select_from(ReportRecord))
                users = await s.scalar(select(func.count()).select_from(UserProfileRecord))
                high = await s.scalar(
                    select(func.count()).select_from(ReportRecord).where(ReportRecord.risk_level == "high")
                )
                resolved = await s.scalar(
                    select(func.count()).select_from(ReportRecord).where(ReportRecord.status == "resolved")
                )
        except SQLAlchemyError as e:
            log.error("Error getting analytics: %s", e)
            return None
        return {
            "total_reports": total or 0,
            "active_users": users or 0,
            "high_risk_cases": high or 0,
            "resolved_cases": resolved or 0,
            "last_updated": datetime.now(timezone.utc).isoformat(),
        }
