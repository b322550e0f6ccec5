"""FastAPI entry point for the Datastar SSE demo service."""

import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config.settings import get_settings
from errors.exceptions import SignalDecodeError

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Datastar SSE",
    description="Server-driven UI updates over Server-Sent Events",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SignalDecodeError)
async def signal_decode_error_handler(request: Request, exc: SignalDecodeError):
    """Signals that do not fit the endpoint's shape are a client error."""
    logger.warning("Rejected signals on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=400, content={"detail": str(exc)})


# ── Register routers ────────────────────────────────────────
from api.counter import router as counter_router  # noqa: E402
from api.health import router as health_router  # noqa: E402
from api.todos import router as todos_router  # noqa: E402

app.include_router(health_router)
app.include_router(counter_router)
app.include_router(todos_router)


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.service_port,
        reload=settings.debug,
        timeout_keep_alive=120,
    )
