import http
import json
import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from .auth.token import TokenCodec
from .core.crypto import PasswordHasher
from .core.database import create_db_and_tables, create_db_engine
from .core.logging import configure_logging
from .core.settings import Settings, get_settings
from .home.router import HomeController
from .http.request import ApiRequest
from .http.response import ResponseFormatter, ResponseSink
from .routes import build_router
from .users.repository import UserRepository
from .users.router import UserController
from .users.service import UserService

logger = logging.getLogger(__name__)

DISPATCH_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]


async def read_body(request: Request) -> dict[str, Any]:
    """
    Query parameters for GET, otherwise the JSON object body ({} when absent or invalid).
    """
    if request.method == "GET":
        return dict(request.query_params)

    raw = await request.body()
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    engine = create_db_engine(settings)
    formatter = ResponseFormatter(settings.DOCUMENTATION_BASE_URL)
    service = UserService(
        UserRepository(engine),
        TokenCodec.from_settings(settings),
        PasswordHasher(settings),
    )
    router = build_router(
        HomeController(settings, formatter),
        UserController(service, formatter),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        create_db_and_tables(engine)
        yield
        engine.dispose()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    @app.api_route("/{path:path}", methods=DISPATCH_METHODS, include_in_schema=False)
    async def dispatch(request: Request):
        api_request = ApiRequest(
            method=request.method,
            path=request.url.path,
            body=await read_body(request),
            headers=dict(request.headers),
        )
        sink = ResponseSink()
        await run_in_threadpool(router.dispatch, api_request, sink)
        if not sink.sent:
            logger.error("No response produced for %s %s", api_request.method, api_request.path)
            sink.json(
                formatter.format_error(api_request, "Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR),
                status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        action = f"{api_request.method} {api_request.path} {sink.status_code} {http.HTTPStatus(sink.status_code).phrase}"
        logger.info(action)
        return JSONResponse(sink.body, status_code=sink.status_code)

    return app
