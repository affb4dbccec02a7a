# kisaan_pukaar/runtime/flow.py
from __future__ import annotations

from pocketflow import AsyncFlow
from kisaan_pukaar.runtime.nodes.generate import GenerateNode
from kisaan_pukaar.runtime.nodes.reply_extract import ReplyExtractNode
from kisaan_pukaar.runtime.nodes.persist import PersistNode


def make_answer_flow() -> AsyncFlow:
    """Answer flow: generate → reply_extract

    Expects in shared: input_text, language, profile, generation_client.
    Leaves: raw_reply, reply_text, report.
    """
    generate = GenerateNode()
    reply_extract = ReplyExtractNode()

    generate.successors = {"ok": reply_extract}

    return AsyncFlow(start=generate)


def make_persist_flow() -> AsyncFlow:
    """Persist flow: persist (message, then report if any).

    Run after the bot reply is on screen, so a storage failure never hides it.
    """
    return AsyncFlow(start=PersistNode())
