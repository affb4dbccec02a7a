# kisaan_pukaar/api/deps.py
from __future__ import annotations

from collections import OrderedDict
from typing import Optional

from fastapi import Request

from kisaan_pukaar import config
from kisaan_pukaar.runtime.controller import ConversationController
from kisaan_pukaar.runtime.nodes.generate import GenerationClient
from kisaan_pukaar.services.storage import StorageCollaborator
from kisaan_pukaar.utils.logger import get_logger

log = get_logger(__name__)


class SessionRegistry:
    """One ConversationController per browser session, all sharing the same clients.

    At most `max_sessions` are kept; past that the least recently used idle
    session is dropped. A session still answering a turn is never dropped.
    """

    def __init__(
        self,
        generation_client: GenerationClient,
        storage: Optional[StorageCollaborator],
        max_sessions: int = config.MAX_SESSIONS,
    ) -> None:
        self.generation_client = generation_client
        self.storage = storage
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, ConversationController]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    async def get(self, session_id: str) -> ConversationController:
        """Return the session's controller, creating and loading it on first use."""
        controller = self._sessions.get(session_id)
        if controller is not None:
            self._sessions.move_to_end(session_id)
            return controller

        controller = ConversationController(self.generation_client, self.storage)
        await controller.load_session()
        self._sessions[session_id] = controller
        self._evict()
        return controller

    def find(self, session_id: str) -> Optional[ConversationController]:
        return self._sessions.get(session_id)

    def _evict(self) -> None:
        while len(self._sessions) > self.max_sessions:
            older = list(self._sessions.items())[:-1]
            idle = next((sid for sid, c in older if not c.is_loading), None)
            if idle is None:
                return
            del self._sessions[idle]
            log.info("Dropped idle session %s", idle)


def get_sessions(request: Request) -> SessionRegistry:
    """FastAPI dependency: the registry built at startup."""
    return request.app.state.sessions
