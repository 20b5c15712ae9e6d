"""Main FastAPI application for the Mindy routine backend."""
from fastapi import FastAPI, Request

from mindy.api.routes.chat_analysis import router as chat_analysis_router
from mindy.api.routes.routines import router as routines_router
from mindy.api.routes.users import router as users_router
from mindy.core.config import settings
from mindy.core.logging import configure_logging
from mindy.core.middleware import RequestIDMiddleware, register_exception_handlers
from mindy.observability.client import init_opik
from mindy.observability.tracing import trace

configure_logging(log_level=settings.log_level)

app = FastAPI(title=settings.app_name, version="0.1.0")
app.add_middleware(RequestIDMiddleware)
register_exception_handlers(app)
app.include_router(users_router)
app.include_router(routines_router)
app.include_router(chat_analysis_router)


@app.on_event("startup")
async def startup_observability() -> None:
    """Initialize observability backends after the event loop starts."""
    init_opik()


@app.get("/health", tags=["health"], summary="Readiness probe")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can probe the API."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return {"status": "ok"}
