# kisaan_pukaar/runtime/nodes/persist.py
from __future__ import annotations
from typing import Any, Dict, Optional
from pocketflow import AsyncNode

from kisaan_pukaar import config
from kisaan_pukaar.schemas.chat import AMRReport, StoredReport
from kisaan_pukaar.schemas.profile import UserProfile


class PersistNode(AsyncNode):
    """
    Forward one finished turn to the storage collaborator.
    - prep_async: snapshot inputs (no side-effects)
    - exec_async: compute a write plan (no side-effects)
    - post_async: save the message, then create the report if there is one
    Routes "skipped" when no connected storage is available.
    """

    async def prep_async(self, shared: Dict[str, Any]) -> Dict[str, Any]:
        profile: Optional[UserProfile] = shared.get("profile")
        return {
            "storage": shared.get("storage"),
            "from_": (profile.phone if profile and profile.phone else config.ANONYMOUS_USER),
            "user_id": (profile.id if profile and profile.id else config.ANONYMOUS_USER),
            "input_text": str(shared.get("input_text", "")),
            "reply_text": str(shared.get("reply_text", "")),
            "report": shared.get("report"),
        }

    async def exec_async(self, prep: Dict[str, Any]) -> Dict[str, Any]:
        storage = prep["storage"]
        if storage is None or not storage.is_connected:
            return {"skip": True}

        report: Optional[AMRReport] = prep["report"]
        message = {
            "from_": prep["from_"],
            "to": config.BOT_RECIPIENT,
            "message": prep["input_text"],
            "response": prep["reply_text"],
            "report": report,
        }
        report_req = None
        if report is not None:
            report_req = {
                "user_id": prep["user_id"],
                "message": prep["input_text"],
                "analysis": report,
                "recommendations": prep["reply_text"],
            }
        return {"skip": False, "message": message, "report": report_req}

    async def post_async(self, shared: Dict[str, Any], prep: Dict[str, Any], exec_res: Dict[str, Any]) -> str:
        shared["stored_report"] = None
        if exec_res["skip"]:
            shared["saved"] = False
            return "skipped"

        storage = prep["storage"]
        shared["saved"] = await storage.save_message(**exec_res["message"])

        if exec_res["report"] is not None:
            stored: Optional[StoredReport] = await storage.create_report(**exec_res["report"])
            shared["stored_report"] = stored
        return "ok"
