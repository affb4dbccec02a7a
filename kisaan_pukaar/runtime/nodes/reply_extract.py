# kisaan_pukaar/runtime/nodes/reply_extract.py
from __future__ import annotations

import json
import re
from typing import Any, Dict, NamedTuple, Optional

from pocketflow import AsyncNode
from pydantic import ValidationError

from kisaan_pukaar.schemas.chat import AMRReport
from kisaan_pukaar.utils.logger import get_logger

log = get_logger(__name__)

# Greedy: first "{" to last "}" in the whole text. Two adjacent objects are
# taken as one span, fail to parse, and fall back to the full text.
_JSON_SPAN_RE = re.compile(r"\{[\s\S]*\}")


class ParsedReply(NamedTuple):
    reply_text: str
    report: Optional[AMRReport]


def _coerce_report(value: Any) -> Optional[AMRReport]:
    if value is None:
        return None
    try:
        return AMRReport.model_validate(value)
    except ValidationError as e:
        log.debug("discarding report that failed validation: %s", e.errors()[:3])
        return None


def parse_reply(raw: str) -> ParsedReply:
    """Split raw model output into the user-facing reply and an optional report.

    Never raises: any structural problem falls back to (raw, None).
    """
    match = _JSON_SPAN_RE.search(raw)
    if not match:
        return ParsedReply(raw, None)

    try:
        data = json.loads(match.group(0))
    except ValueError:
        return ParsedReply(raw, None)

    if not isinstance(data, dict):
        return ParsedReply(raw, None)

    text = data.get("text")
    if text is not None and not isinstance(text, str):
        return ParsedReply(raw, None)

    return ParsedReply(text or raw, _coerce_report(data.get("report")))


class ReplyExtractNode(AsyncNode):
    """Extract reply text and AMR report from the raw generation output.
    - prep_async: read raw reply
    - exec_async: pure parse (no side-effects)
    - post_async: write reply_text/report into shared and route
    """

    async def prep_async(self, shared: Dict[str, Any]) -> str:
        return str(shared.get("raw_reply") or "")

    async def exec_async(self, raw: str) -> ParsedReply:
        return parse_reply(raw)

    async def post_async(self, shared: Dict[str, Any], prep: str, exec_res: ParsedReply) -> str:
        shared["reply_text"] = exec_res.reply_text
        shared["report"] = exec_res.report
        return "ok"
