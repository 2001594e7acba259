from fastapi import FastAPI

from backend.routes import router
from roleplay_room.config import backend_from_env, load_env
from roleplay_room.llm import GenerationBackend

load_env()


def create_app(backend: GenerationBackend | None = None) -> FastAPI:
    app = FastAPI(title="Roleplay Room")
    # LLM_* env vars pick the backend unless one is injected
    app.state.llm_backend = backend or backend_from_env()
    app.state.backend_kind = type(app.state.llm_backend).__name__
    app.include_router(router, prefix="/api")
    return app


# Default app instance for uvicorn (uses LLM_* env vars)
app = create_app()
