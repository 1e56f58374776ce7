import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from concierge.config import Settings, load_settings
from concierge.routers import chat, cms, health, hotels, site_config
from concierge.services.anthropic_client import AnthropicClient
from concierge.services.chat_gateway import ChatGateway
from concierge.services.cms_cache import CmsCache
from concierge.services.webflow_cms import WebflowClient

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    webflow_transport: Optional[httpx.AsyncBaseTransport] = None,
    anthropic_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the app. Transports are only passed in by tests (httpx.MockTransport);
    missing credentials disable features instead of failing startup.
    """
    settings = settings or load_settings()

    cms_client = None
    if settings.has_webflow:
        cms_client = WebflowClient(
            settings.webflow_api_token,
            settings.webflow_site_id,
            timeout=settings.http_timeout_seconds,
            transport=webflow_transport,
        )
    cache = CmsCache(cms_client, ttl_seconds=settings.cache_ttl_seconds)

    chat_gateway = None
    if settings.has_claude:
        chat_gateway = ChatGateway(
            cache,
            AnthropicClient(
                settings.anthropic_api_key,
                model=settings.anthropic_model,
                max_tokens=settings.anthropic_max_tokens,
                timeout=settings.http_timeout_seconds,
                transport=anthropic_transport,
            ),
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("webflow_api configured=%s", settings.has_webflow)
        logger.info("anthropic_api configured=%s", settings.has_claude)
        logger.info("mapbox configured=%s", bool(settings.mapbox_token))

        # initial load runs in the background so /api/health answers right away;
        # failures are logged and the cache stays empty until the next refresh
        app.state.startup_refresh = None
        if settings.has_webflow:
            app.state.startup_refresh = asyncio.create_task(cache.refresh())
        yield

        task = app.state.startup_refresh
        if task is not None and not task.done():
            cache.cancel_refresh()
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task

    app = FastAPI(title="JO&SO Concierge API", lifespan=lifespan)
    app.state.settings = settings
    app.state.cache = cache
    app.state.chat_gateway = chat_gateway

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Total-Ms"],
    )

    app.include_router(health.router) # GET /api/health
    app.include_router(site_config.router) # GET /api/config
    app.include_router(cms.router) # GET /api/cms/stats, POST /api/cms/refresh
    app.include_router(hotels.router) # GET /api/hotels, /api/hotels/markers, /api/hotels/{slug}
    app.include_router(chat.router) # POST /api/chat

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError):
        # the frontend reads {"error"}, so malformed bodies get 400 in that shape instead of 422 {"detail"}
        errors = exc.errors()
        first = errors[0] if errors else {}
        where = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        logger.info("request_invalid path=%s errors=%s", request.url.path, len(errors))
        return JSONResponse(
            status_code=400,
            content={"error": f"Invalid request: {where}: {message}" if where else f"Invalid request: {message}"},
        )

    index_path = settings.public_dir / "index.html"

    @app.get("/", include_in_schema=False)
    def landing_page():
        if not index_path.is_file():
            return JSONResponse(status_code=404, content={"error": "Landing page not found"})
        return FileResponse(index_path)

    # frontend bundle (map, chat widget); mounted last so /api routes win
    if settings.public_dir.is_dir():
        app.mount("/", StaticFiles(directory=settings.public_dir), name="public")
    else:
        logger.warning("public_dir_missing path=%s", settings.public_dir)

    return app


def run() -> None:
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
