"""FastAPI application entrypoint."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.api.routes import points
from backend.api.routes import rounds
from backend.api.routes import specs
from backend.api.sessions import SessionRegistry
from backend.db.store import DuckDBDocumentStore
from sizing.config import Settings, get_settings


def create_app(
    store: DuckDBDocumentStore | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Build the API; the default store is opened lazily on first request."""
    app = FastAPI(title="Techpack Sizing API", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.store = store
    app.state.sessions = SessionRegistry(settings or get_settings())

    app.include_router(specs.router, prefix="/specs", tags=["specs"])
    app.include_router(points.router, prefix="/specs", tags=["points"])
    app.include_router(rounds.router, prefix="/specs", tags=["rounds"])

    @app.get("/health", tags=["health"])
    def healthcheck() -> dict[str, str]:
        """Simple health endpoint for uptime checks."""
        return {"status": "ok"}

    return app


app = create_app()
