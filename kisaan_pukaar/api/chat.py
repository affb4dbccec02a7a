# kisaan_pukaar/api/chat.py
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List

from kisaan_pukaar.api.deps import SessionRegistry, get_sessions
from kisaan_pukaar.schemas.chat import ChatIn, ChatMessage, ChatOut, StoredReport

router = APIRouter(prefix="/api/chat", tags=["chat"])


@router.post("", response_model=ChatOut)
async def chat_endpoint(
    payload: ChatIn,
    sessions: SessionRegistry = Depends(get_sessions),
):
    """
    Handle one user turn:
    1. Reject while the session is still answering a previous turn
    2. Run generate → reply_extract → persist through the controller
    3. Return the bot reply, its report and the full transcript
    """
    controller = await sessions.get(payload.session_id)
    if controller.is_loading:
        raise HTTPException(status_code=409, detail="Previous message is still being answered")

    if payload.language:
        try:
            controller.set_language(payload.language)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))

    reply = await controller.send_message(payload.message)
    return ChatOut(
        reply=reply.text if reply else "",
        report=reply.report if reply else None,
        messages=list(controller.messages),
    )


@router.get("/history", response_model=List[ChatMessage])
async def get_chat_history(
    session_id: str = Query(...),
    sessions: SessionRegistry = Depends(get_sessions),
):
    """Return the transcript of a session (empty for unknown sessions)."""
    controller = sessions.find(session_id)
    return list(controller.messages) if controller else []


@router.get("/reports", response_model=List[StoredReport])
async def get_reports(
    session_id: str = Query(...),
    sessions: SessionRegistry = Depends(get_sessions),
):
    controller = sessions.find(session_id)
    return list(controller.reports) if controller else []
