# kisaan_pukaar/runtime/nodes/generate.py
from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

from pocketflow import AsyncNode

from kisaan_pukaar import config
from kisaan_pukaar.schemas.profile import UserProfile
from kisaan_pukaar.utils.logger import get_logger

log = get_logger(__name__)

# The reply parser expects the model to answer in exactly this schema,
# so keep the wording and layout stable.
PROMPT_TEMPLATE = (
    "You are an AMR (Antimicrobial Resistance) Medical Assistant for Pakistani farmers and livestock owners. \n"
    "    Language: {language}\n"
    "    User Type: {category}\n"
    "    Location: {location}\n"
    "    \n"
    "    User Message: {message}\n"
    "    \n"
    "    Provide:\n"
    "    1. A helpful response about antimicrobial resistance\n"
    "    2. AMR analysis report if the message contains medical/animal health content\n"
    "    3. Recommendations in simple, local language\n"
    "    4. Safety warnings if applicable\n"
    "    \n"
    "    Response format:\n"
    "    {{\n"
    '      "text": "your response here",\n'
    '      "report": {{\n'
    '        "type": "amr_analysis",\n'
    '        "risk_level": "low|medium|high",\n'
    '        "recommendations": ["rec1", "rec2"],\n'
    '        "warnings": ["warning1", "warning2"]\n'
    "      }}\n"
    "    }}"
)


class GenerationClient(Protocol):
    async def generate(self, prompt: str) -> str: ...


def build_prompt(message: str, language: str, profile: Optional[UserProfile] = None) -> str:
    """Compose the AMR assistant prompt. Pure: same inputs, same string."""
    return PROMPT_TEMPLATE.format(
        language=language,
        category=(profile.category if profile and profile.category else config.DEFAULT_CATEGORY),
        location=(profile.location if profile and profile.location else config.DEFAULT_LOCATION),
        message=message,
    )


class GenerateNode(AsyncNode):
    """Call the generation client once for the current user turn.
    - prep_async: compose the prompt, resolve the injected client
    - exec_async: network call (no shared mutation)
    - post_async: store raw text for the reply extractor
    Failures propagate to the caller; there is no degraded reply here.
    """

    async def prep_async(self, shared: Dict[str, Any]) -> Dict[str, Any]:
        prompt = build_prompt(
            str(shared.get("input_text", "")),
            shared.get("language") or config.DEFAULT_LANGUAGE,
            shared.get("profile"),
        )
        return {"prompt": prompt, "client": shared["generation_client"]}

    async def exec_async(self, prep: Dict[str, Any]) -> Dict[str, Any]:
        client: GenerationClient = prep["client"]
        raw = await client.generate(prep["prompt"])
        return {"raw": raw}

    async def exec_fallback_async(self, prep: Dict[str, Any], exc: Exception) -> Dict[str, Any]:
        log.error("generation failed: %s", exc)
        raise exc

    async def post_async(self, shared: Dict[str, Any], prep: Dict[str, Any], exec_res: Dict[str, Any]) -> str:
        shared["raw_reply"] = exec_res["raw"]
        return "ok"
