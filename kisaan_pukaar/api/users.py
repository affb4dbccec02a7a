from fastapi import APIRouter, Depends, HTTPException
from typing import Any, Dict, List

from kisaan_pukaar.api.deps import SessionRegistry, get_sessions
from kisaan_pukaar.schemas.chat import StoredReport
from kisaan_pukaar.schemas.profile import (
    CATEGORY_LABELS,
    LANGUAGES,
    Advisory,
    CategoryView,
    LanguageView,
    OutcomeIn,
    ProfileIn,
    UserProfile,
)

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/languages", response_model=List[LanguageView])
async def list_languages():
    return [LanguageView(code=code, name=name) for code, name in LANGUAGES]


@router.get("/categories", response_model=List[CategoryView])
async def list_categories():
    return [CategoryView(id=k, name=v) for k, v in CATEGORY_LABELS.items()]


@router.post("/profile", response_model=List[StoredReport])
async def select_profile(
    payload: ProfileIn,
    sessions: SessionRegistry = Depends(get_sessions),
):
    """Attach a profile to the session and return that user's stored reports."""
    controller = await sessions.get(payload.session_id)
    await controller.select_profile(payload.profile)
    return list(controller.reports)


@router.get("/profile/{user_id}", response_model=UserProfile)
async def get_profile(
    user_id: str,
    sessions: SessionRegistry = Depends(get_sessions),
):
    fetcher = getattr(sessions.storage, "get_user_profile", None)
    profile = await fetcher(user_id) if callable(fetcher) else None
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not available")
    return profile


@router.get("/advisory", response_model=List[Advisory])
async def expert_advisory(sessions: SessionRegistry = Depends(get_sessions)):
    fetcher = getattr(sessions.storage, "get_expert_advisory", None)
    return await fetcher() if callable(fetcher) else []


@router.get("/analytics", response_model=Dict[str, Any])
async def analytics(sessions: SessionRegistry = Depends(get_sessions)):
    fetcher = getattr(sessions.storage, "get_analytics", None)
    data = await fetcher() if callable(fetcher) else None
    return data or {}


@router.post("/outcomes")
async def track_outcome(
    payload: OutcomeIn,
    sessions: SessionRegistry = Depends(get_sessions),
):
    tracker = getattr(sessions.storage, "track_treatment_outcome", None)
    ok = False
    if callable(tracker):
        ok = await tracker(payload.user_id, payload.treatment, payload.outcome, payload.duration)
    return {"saved": ok}
