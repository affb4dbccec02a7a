# kisaan_pukaar/db/models.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4

from sqlalchemy import JSON, Column, Index
from sqlmodel import Field, SQLModel


# -------------------------
# Helpers
# -------------------------

def utcnow() -> datetime:
    """Timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid4().hex}"


# -------------------------
# Tables
# -------------------------

class UserProfileRecord(SQLModel, table=True):
    __tablename__ = "user_profile"

    id: str = Field(primary_key=True)
    name: str
    phone: str
    category: str = Field(default="general", index=True)
    language: str = Field(default="ur")
    location: str = Field(default="Pakistan")
    created_at: datetime = Field(default_factory=utcnow, nullable=False)


class MessageLog(SQLModel, table=True):
    """One chat turn as delivered over the messaging channel."""
    __tablename__ = "message_log"

    id: str = Field(default_factory=lambda: new_id("msg"), primary_key=True)
    sender: str = Field(index=True, description="Phone number or 'anonymous'")
    recipient: str
    message: str
    response: str
    report_json: Optional[Dict[str, Any]] = Field(
        default=None,
        sa_column=Column(JSON, nullable=True),
        description="AMR report attached to the reply, if any.",
    )
    created_at: datetime = Field(default_factory=utcnow, nullable=False, index=True)


class ReportRecord(SQLModel, table=True):
    __tablename__ = "amr_report"

    id: str = Field(default_factory=lambda: new_id("report"), primary_key=True)
    user_id: str = Field(index=True, nullable=False)
    message: str
    analysis_json: Dict[str, Any] = Field(sa_column=Column(JSON, nullable=False))
    recommendations: str = ""
    risk_level: str = Field(index=True)
    status: str = Field(default="active", index=True)
    created_at: datetime = Field(default_factory=utcnow, nullable=False, index=True)


class TreatmentOutcome(SQLModel, table=True):
    __tablename__ = "treatment_outcome"

    id: str = Field(default_factory=lambda: new_id("outcome"), primary_key=True)
    user_id: str = Field(index=True, nullable=False)
    treatment: str
    outcome: str
    duration: int = Field(description="Treatment duration in days")
    created_at: datetime = Field(default_factory=utcnow, nullable=False)


# -------------------------
# Table indexes
# -------------------------

Index(
    "ix_amr_report_user_created",
    ReportRecord.__table__.c.user_id,
    ReportRecord.__table__.c.created_at,
)
