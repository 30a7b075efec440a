"""FastAPI application - browser chat surface over WebSocket."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse

from ..chat.credentials import CredentialStore, DotenvCredentialStore
from ..chat.orchestrator import ProviderFactory
from ..chat.providers import create_provider
from ..config import Settings
from .routes import chat, settings as settings_routes


def create_app(
    settings: Settings | None = None,
    credentials: CredentialStore | None = None,
    provider_factory: ProviderFactory = create_provider,
) -> FastAPI:
    settings = settings or Settings.from_env()
    if credentials is None:
        credentials = DotenvCredentialStore(settings.env_file, settings.api_key_name)

    app = FastAPI(title="Habla API")
    app.state.settings = settings
    app.state.credentials = credentials
    app.state.provider_factory = provider_factory

    # CORS for a Vite dev server
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(chat.router)
    app.include_router(settings_routes.router)

    @app.get("/")
    async def index():
        return HTMLResponse(
            "<h1>Habla API</h1><p>Connect a client to <code>/ws/chat</code>; "
            "set the API key with <code>PUT /api/settings/key</code>.</p>"
        )

    return app
