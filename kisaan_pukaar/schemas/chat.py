from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

RiskLevel = Literal["low", "medium", "high"]
Sender = Literal["user", "bot"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AMRReport(BaseModel):
    """Structured risk report extracted from a model reply."""
    model_config = ConfigDict(frozen=True)

    type: Literal["amr_analysis"] = "amr_analysis"
    risk_level: RiskLevel
    recommendations: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    sender: Sender
    timestamp: datetime = Field(default_factory=utcnow)
    language: Optional[str] = None
    # absent when the reply carried no analyzable report
    report: Optional[AMRReport] = None


class StoredReport(BaseModel):
    id: str
    user_id: str
    message: str
    analysis: AMRReport
    recommendations: str = ""
    risk_level: RiskLevel
    status: str = "active"
    created_at: datetime = Field(default_factory=utcnow)


class ChatIn(BaseModel):
    session_id: str
    message: str
    language: Optional[str] = None


class ChatOut(BaseModel):
    reply: str
    report: Optional[AMRReport] = None
    messages: List[ChatMessage] = Field(default_factory=list)
