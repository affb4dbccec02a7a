# test/test_flow.py
import json
import pytest
from typing import Any, Dict, List

from kisaan_pukaar.runtime.flow import make_answer_flow, make_persist_flow
from kisaan_pukaar.runtime.nodes.generate import build_prompt


class FakeGeminiClient:
    def __init__(self, reply: str) -> None:
        self.reply = reply
        self.prompts: List[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.reply


@pytest.mark.asyncio
async def test_answer_flow_generates_and_extracts():
    raw = "Sure!\n" + json.dumps({
        "text": "Do not mix antibiotics into feed without advice.",
        "report": {"type": "amr_analysis", "risk_level": "low", "recommendations": ["r"], "warnings": ["w"]},
    })
    client = FakeGeminiClient(raw)
    shared: Dict[str, Any] = {
        "input_text": "can I add antibiotics to chicken feed?",
        "language": "en",
        "generation_client": client,
    }

    action = await make_answer_flow().run_async(shared)

    assert action == "ok"
    assert client.prompts == [build_prompt("can I add antibiotics to chicken feed?", "en", None)]
    assert shared["raw_reply"] == raw
    assert shared["reply_text"] == "Do not mix antibiotics into feed without advice."
    assert shared["report"].warnings == ["w"]


@pytest.mark.asyncio
async def test_answer_flow_plain_text_reply_has_no_report():
    shared: Dict[str, Any] = {
        "input_text": "hello",
        "language": "ur",
        "generation_client": FakeGeminiClient("السلام علیکم"),
    }

    await make_answer_flow().run_async(shared)

    assert shared["reply_text"] == "السلام علیکم"
    assert shared["report"] is None


@pytest.mark.asyncio
async def test_persist_flow_without_storage_is_skipped():
    shared: Dict[str, Any] = {"input_text": "hello", "reply_text": "hi", "report": None}
    assert await make_persist_flow().run_async(shared) == "skipped"
