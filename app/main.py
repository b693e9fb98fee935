# app/main.py
from __future__ import annotations

from fastapi import APIRouter, FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# --- Logging & request-id ---
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response as StarletteResponse

from api.routers.news import router as news_router
from app.config import settings
from app.core.logging import configure_logging, get_logger
from app.core.request_id import clear_request_id, new_request_id, set_request_id
from app.models.news_public import ErrorResponse

configure_logging(service_name="api", level=settings.LOG_LEVEL)
logger = get_logger()

GENERIC_ERROR_MESSAGE = "Failed to fetch news feeds"


def _error_response() -> JSONResponse:
    return JSONResponse(status_code=500, content=ErrorResponse(error=GENERIC_ERROR_MESSAGE).model_dump())


app = FastAPI(
    title="Philly News Aggregator",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        req_id = request.headers.get("x-request-id") or new_request_id()
        set_request_id(req_id)

        logger.info("request_started", method=request.method, path=str(request.url.path))
        try:
            response: StarletteResponse = await call_next(request)
        except Exception:
            # the 500 is built here so it keeps the request id and passes back through CORS
            logger.exception("unhandled_exception", path=str(request.url.path))
            response = _error_response()
        logger.info("request_ended", status_code=response.status_code)
        response.headers["X-Request-Id"] = req_id
        clear_request_id()
        return response


# Last added runs outermost: CORS wraps RequestIdMiddleware, including its 500 responses.
app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOWED_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "OPTIONS", "HEAD"],
    allow_headers=["*"],
    expose_headers=["X-Request-Id"],
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_exception", path=str(request.url.path))
    return _error_response()


# --- Health endpoints ---
@app.get("/health")
async def health():
    return {"ok": True, "version": settings.APP_VERSION}

@app.get("/healthz")
async def healthz():
    return {"ok": True, "version": settings.APP_VERSION}

@app.head("/")
async def root_head():
    """HEAD handler for root endpoint to avoid 405 errors in logs."""
    return Response(status_code=200)


# --- API v1 router ---
api_v1_router = APIRouter(prefix="/api/v1")
api_v1_router.include_router(news_router)

app.include_router(api_v1_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
