# kisaan_pukaar/services/storage.py
from __future__ import annotations

from typing import Optional, Protocol, Sequence, runtime_checkable

from kisaan_pukaar.schemas.chat import AMRReport, StoredReport
from kisaan_pukaar.utils.logger import get_logger

log = get_logger(__name__)


@runtime_checkable
class StorageCollaborator(Protocol):
    """Persistence boundary consumed by the conversation core.

    Implementations never raise from the operations below: when not connected,
    or on a backend failure, they return False / None / [].
    """

    @property
    def is_connected(self) -> bool: ...

    async def probe(self) -> bool: ...

    async def save_message(
        self,
        from_: str,
        to: str,
        message: str,
        response: str,
        report: Optional[AMRReport] = None,
    ) -> bool: ...

    async def create_report(
        self,
        user_id: str,
        message: str,
        analysis: AMRReport,
        recommendations: str,
    ) -> Optional[StoredReport]: ...

    async def get_reports_for_user(self, user_id: str) -> list[StoredReport]: ...


async def select_storage(candidates: Sequence[StorageCollaborator]) -> Optional[StorageCollaborator]:
    """Return the first candidate whose probe succeeds, in order."""
    for backend in candidates:
        name = type(backend).__name__
        try:
            available = await backend.probe()
        except Exception as e:
            log.warning("storage probe raised for %s: %s", name, e)
            available = False
        if available:
            log.info("using storage backend %s", name)
            return backend
        log.info("storage backend %s unavailable, trying next", name)
    log.warning("no storage backend available; persistence disabled")
    return None
