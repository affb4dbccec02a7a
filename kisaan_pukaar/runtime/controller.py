# kisaan_pukaar/runtime/controller.py
from __future__ import annotations

import itertools
from typing import Any, Dict, List, Optional, Sequence

from kisaan_pukaar import config
from kisaan_pukaar.runtime.flow import make_answer_flow, make_persist_flow
from kisaan_pukaar.runtime.nodes.generate import GenerationClient
from kisaan_pukaar.schemas.chat import AMRReport, ChatMessage, Sender, StoredReport
from kisaan_pukaar.schemas.profile import LANGUAGE_CODES, UserProfile
from kisaan_pukaar.services.storage import StorageCollaborator, select_storage
from kisaan_pukaar.utils.logger import get_logger

log = get_logger(__name__)

# Shown when a turn fails. Urdu covers every regional language in the picker.
ERROR_MESSAGES = {
    "ur": "معذرت، پیغام بھیجنے میں مسئلہ پیش آیا۔ براہ کرم دوبارہ کوشش کریں۔",
    "en": "Sorry, there was a problem sending your message. Please try again.",
}


def error_text(language: Optional[str]) -> str:
    return ERROR_MESSAGES.get(language or "", ERROR_MESSAGES["ur"])


class ConversationController:
    """Owns one conversation: the message list, the report list and the loading flag.

    `is_loading` is advisory only; callers are expected to check it before
    sending (the HTTP layer answers 409), nothing here blocks a second turn.
    """

    def __init__(
        self,
        generation_client: GenerationClient,
        storage: Optional[StorageCollaborator] = None,
        *,
        language: str = config.DEFAULT_LANGUAGE,
        profile: Optional[UserProfile] = None,
    ) -> None:
        self.generation_client = generation_client
        self.storage = storage
        self.language = language
        self.profile = profile
        self.messages: List[ChatMessage] = []
        self.reports: List[StoredReport] = []
        self.is_loading = False
        self._ids = itertools.count(1)

    @property
    def user_id(self) -> str:
        return self.profile.id if self.profile else config.ANONYMOUS_USER

    # ---------------------------
    # Session setup
    # ---------------------------
    async def start(self, candidates: Sequence[StorageCollaborator]) -> Optional[StorageCollaborator]:
        """Pick the first available storage backend and load this user's reports."""
        self.storage = await select_storage(candidates)
        await self.load_session()
        return self.storage

    async def load_session(self) -> None:
        """Load what the selected storage already holds for this conversation.

        A storage that keeps profiles (the local store) supplies the default
        profile when none was chosen; then the user's reports are loaded.
        """
        if self.profile is None and self.storage is not None and self.storage.is_connected:
            fetch = getattr(self.storage, "get_user_profile", None)
            if callable(fetch):
                self.profile = await fetch(config.DEFAULT_PROFILE_ID)
        await self.reload_reports()

    async def reload_reports(self) -> None:
        if self.storage is None:
            self.reports[:] = []
            return
        self.reports[:] = await self.storage.get_reports_for_user(self.user_id)

    async def select_profile(self, profile: UserProfile) -> None:
        self.profile = profile
        if profile.language in LANGUAGE_CODES:
            self.language = profile.language
        await self.reload_reports()

    def set_language(self, code: str) -> None:
        if code not in LANGUAGE_CODES:
            raise ValueError(f"unsupported language: {code!r}")
        self.language = code

    # ---------------------------
    # Turns
    # ---------------------------
    def _new_message(
        self,
        text: str,
        sender: Sender,
        language: Optional[str],
        report: Optional[AMRReport] = None,
    ) -> ChatMessage:
        return ChatMessage(
            id=f"msg-{next(self._ids)}",
            text=text,
            sender=sender,
            language=language,
            report=report,
        )

    async def send_message(self, input_text: str) -> Optional[ChatMessage]:
        """Run one turn and return the bot message that was appended.

        Blank input is ignored (returns None). The user message is appended
        before anything is awaited.
        """
        if not input_text or not input_text.strip():
            return None

        language = self.language
        self.messages.append(self._new_message(input_text, "user", language))
        self.is_loading = True

        shared: Dict[str, Any] = {
            "input_text": input_text,
            "language": language,
            "profile": self.profile,
            "generation_client": self.generation_client,
            "storage": self.storage,
        }
        try:
            await make_answer_flow().run_async(shared)

            reply = self._new_message(shared["reply_text"], "bot", language, report=shared.get("report"))
            self.messages.append(reply)

            await make_persist_flow().run_async(shared)
            stored: Optional[StoredReport] = shared.get("stored_report")
            if stored is not None:
                self.reports.append(stored)
            return reply
        except Exception as e:
            log.error("Error sending message: %s", e)
            failure = self._new_message(error_text(language), "bot", language)
            self.messages.append(failure)
            return failure
        finally:
            self.is_loading = False
