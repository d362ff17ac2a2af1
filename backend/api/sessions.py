"""Open editing sessions held by the running API."""

from fastapi import Depends, HTTPException, Request, status

from sizing import logger
from sizing.config import Settings
from sizing.drafts import DraftStore
from sizing.session import DocumentStore, EditingSession


class SessionRegistry:
    """One editing session per specification id."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.drafts = DraftStore(settings.draft_dir)
        self._sessions: dict[str, EditingSession] = {}

    def __contains__(self, spec_id: str) -> bool:
        return spec_id in self._sessions

    def get(self, spec_id: str) -> EditingSession:
        session = self._sessions.get(spec_id)
        if session is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"No open editing session for {spec_id}",
            )
        return session

    async def open(
        self, spec_id: str, store: DocumentStore, restore_draft: bool = False
    ) -> EditingSession:
        session = await EditingSession.open(
            spec_id,
            store,
            drafts=self.drafts,
            settings=self.settings,
            restore_draft=restore_draft,
        )
        self._sessions[spec_id] = session
        return session

    def close(self, spec_id: str) -> bool:
        session = self._sessions.pop(spec_id, None)
        if session is None:
            return False
        session.flush_draft()
        logger.info("Closed editing session for %s", spec_id)
        return True


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def get_session(spec_id: str, registry: SessionRegistry = Depends(get_registry)) -> EditingSession:
    return registry.get(spec_id)
