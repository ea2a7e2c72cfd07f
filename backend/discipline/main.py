from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
import time

from discipline.core.config import settings
from discipline.core.logging import setup_logging, get_logger, bind_request_context
from discipline.domain.exceptions import (
    AlreadyInCircle, CircleError, CircleFull, DisciplineError, InvalidTransition,
    NotFound, PenaltyEditRejected, PreconditionFailed, RecordLocked
)
from discipline.infrastructure.database.session import engine
from discipline.infrastructure.database import models  # noqa: F401
from discipline.infrastructure.database.session import Base
from discipline.api.routes import users, catalog, days, penalties, rewards, streak, couples, analytics

# ──── Init ────────────────────────────────────────────────────────────────────
setup_logging()
logger = get_logger(__name__)
Base.metadata.create_all(bind=engine)
limiter = Limiter(key_func=get_remote_address, default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"])

# ──── App ─────────────────────────────────────────────────────────────────────
app = FastAPI(
    title="DISCIPLINE OS API",
    version=settings.APP_VERSION,
    description="""
## Discipline OS — daily accountability

Score a fixed catalog of daily tasks, get a safe / warning / failure verdict at
day end, serve penalties for failed days and earn rewards on streak milestones.

Every call except `POST /api/v1/users` and `/health` expects an `X-User-Id`
header carrying the id returned when the profile was created.
    """,
)

# ──── Middleware ──────────────────────────────────────────────────────────────
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_logger(request: Request, call_next):
    bind_request_context(user_id=request.headers.get("X-User-Id"), path=request.url.path)
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.info(
        "HTTP request",
        method=request.method,
        path=request.url.path,
        status=response.status_code,
        duration_ms=duration
    )
    return response


# ──── Errors ──────────────────────────────────────────────────────────────────
# Most specific class wins; anything unlisted (InvariantViolation) is a 500
ERROR_STATUS = {
    NotFound: 404,
    PreconditionFailed: 409,
    RecordLocked: 409,
    InvalidTransition: 409,
    PenaltyEditRejected: 409,
    CircleFull: 409,
    AlreadyInCircle: 409,
    CircleError: 400,
}


def status_for(exc: DisciplineError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 500


@app.exception_handler(DisciplineError)
async def domain_exception_handler(request: Request, exc: DisciplineError):
    status_code = status_for(exc)
    if status_code == 500:
        logger.error("Domain invariant broken", error=str(exc), type=type(exc).__name__, path=request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    logger.warning("Request rejected", error=str(exc), type=type(exc).__name__, status=status_code)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception", error=str(exc), path=request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# ──── Routers ─────────────────────────────────────────────────────────────────
app.include_router(users.router, prefix="/api/v1")
app.include_router(catalog.router, prefix="/api/v1")
app.include_router(days.router, prefix="/api/v1")
app.include_router(penalties.router, prefix="/api/v1")
app.include_router(rewards.router, prefix="/api/v1")
app.include_router(streak.router, prefix="/api/v1")
app.include_router(couples.router, prefix="/api/v1")
app.include_router(analytics.router, prefix="/api/v1")


# ──── Health ──────────────────────────────────────────────────────────────────
@app.get("/health", tags=["System"])
@limiter.exempt
def health_check():
    return {"status": "ok", "app": settings.APP_NAME, "version": settings.APP_VERSION}


@app.get("/", tags=["System"])
def root():
    return {
        "message": f"Welcome to {settings.APP_NAME} API",
        "docs": "/docs",
        "version": settings.APP_VERSION,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("discipline.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
