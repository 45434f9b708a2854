import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import FRONTEND_DIST_DIR, FRONTEND_URL
from routers import chat, config_api, media_proxy, player
from state import AppState

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

NO_STORE = "no-store, no-cache, must-revalidate, proxy-revalidate"


class SPAStaticFiles(StaticFiles):
    """Built frontend. Unknown non-API paths get index.html so client routes like /admin load."""

    async def get_response(self, path: str, scope):
        try:
            return await super().get_response(path, scope)
        except StarletteHTTPException as e:
            if e.status_code != 404 or path.split("/", 1)[0] in ("api", "ws"):
                raise
        response = await super().get_response("index.html", scope)
        response.headers["Cache-Control"] = NO_STORE
        return response


def create_app(state: AppState | None = None, frontend_dir: Path = FRONTEND_DIST_DIR) -> FastAPI:
    kiosk = state or AppState()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await kiosk.player.ensure_catalog()
        yield
        await kiosk.player.shutdown()

    app = FastAPI(title="Hoosier Illusions Kiosk API", lifespan=lifespan)
    app.state.kiosk = kiosk

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(config_api.router)
    app.include_router(media_proxy.router)
    app.include_router(chat.router)
    app.include_router(player.router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    # Built frontend, served last so the API routes win.
    if frontend_dir.is_dir():
        app.mount("/", SPAStaticFiles(directory=frontend_dir, html=True), name="frontend")
        logger.info("Serving frontend from %s", frontend_dir)

    return app


app = create_app()
