import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from groqchat import __version__
from groqchat.api.routes_chat import router as chat_router
from groqchat.api.routes_history import router as history_router
from groqchat.api.routes_settings import router as settings_router
from groqchat.chat.orchestrator import ChatOrchestrator
from groqchat.config import get_data_dir
from groqchat.llm.client import CompletionClient

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stdout,
)

logger = logging.getLogger(__name__)


def create_app(
    data_dir: Optional[Path] = None,
    client: Optional[CompletionClient] = None,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app):
        root = data_dir or get_data_dir()
        app.state.orchestrator = ChatOrchestrator.open(root, client=client)
        logger.info("Chat data directory: %s", root)
        yield

    app = FastAPI(title="groqchat", version=__version__, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:5173",     # Vite dev server
            "http://127.0.0.1:5173",
            "http://localhost:8765",
            "http://127.0.0.1:8765",
            "null",                      # file:// origin
        ],
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    app.include_router(chat_router)
    app.include_router(settings_router)
    app.include_router(history_router)

    @app.get("/api/health")
    async def health_check():
        return {"status": "ok", "version": __version__}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8765)
