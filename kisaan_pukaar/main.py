from contextlib import asynccontextmanager
from typing import Optional, Sequence

from fastapi import FastAPI

from kisaan_pukaar import config
from kisaan_pukaar.api import chat, users
from kisaan_pukaar.api.deps import SessionRegistry
from kisaan_pukaar.runtime.nodes.generate import GenerationClient
from kisaan_pukaar.services.airtable import AirtableStorage
from kisaan_pukaar.services.gemini_client import GeminiClient
from kisaan_pukaar.services.repo import LocalRepo
from kisaan_pukaar.services.storage import StorageCollaborator, select_storage


def create_app(
    generation_client: Optional[GenerationClient] = None,
    storage_candidates: Optional[Sequence[StorageCollaborator]] = None,
) -> FastAPI:
    """Build the API.

    Storage candidates are probed in order at startup and closed at shutdown.
    A generation client not passed in is created (and closed) by the app.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        closers = []
        gen = generation_client
        if gen is None:
            gen = GeminiClient()
            closers.append(gen.aclose)
        candidates = storage_candidates
        if candidates is None:
            candidates = [AirtableStorage(), LocalRepo()]
        closers.extend(c.aclose for c in candidates if callable(getattr(c, "aclose", None)))

        storage = await select_storage(candidates)
        app.state.sessions = SessionRegistry(gen, storage)
        try:
            yield
        finally:
            for close in closers:
                await close()

    app = FastAPI(title=config.APP_NAME, version=config.APP_VERSION, lifespan=lifespan)
    app.include_router(users.router)
    app.include_router(chat.router)
    return app


app = create_app()
