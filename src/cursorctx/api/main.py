from __future__ import annotations

from datetime import UTC, datetime
import logging

from dotenv import load_dotenv
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

from ..config import get_settings
from ..domain.errors import ApiError
from ..infrastructure.redis_client import redis_configured
from ..observability.metrics import metrics_middleware_factory
from .routers.generate import router as generate_router
from .routers.share import router as share_router
from .routers.trending import router as trending_router

load_dotenv()  # Load ANTHROPIC_API_KEY, GITHUB_TOKEN, REDIS_URL from .env if present

LOG = logging.getLogger("cursorctx.api")

app = FastAPI(title="CursorContext Architect API", version="0.1.0")

# Observability: request latency histogram
app.middleware("http")(metrics_middleware_factory())

# Routers, plain and under /api to match the web client's paths
for _router in (generate_router, share_router, trending_router):
    app.include_router(_router)
    app.include_router(_router, prefix="/api")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(get_settings().cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ApiError)
async def api_error_handler(_: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    LOG.info("request_rejected", extra={"path": request.url.path, "errors": len(exc.errors())})
    return JSONResponse(status_code=400, content={"error": "Invalid request body."})


@app.get("/")
def root():
    return {"name": "CursorContext Architect API", "version": "0.1.0"}


@app.get("/health")
def health():
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        "components": {
            "api": "ok",
            "redis": "configured" if redis_configured() else "disabled",
        },
    }


@app.get("/metrics")
def metrics() -> Response:
    data = generate_latest(REGISTRY)
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
