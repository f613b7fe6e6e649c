import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi import _rate_limit_exceeded_handler
import sentry_sdk
import uvicorn

from mockmate.api.v1.health import router as health_router
from mockmate.api.v1.interview import router as interview_router
from mockmate.api.v1.debug import router as debug_router
from mockmate.core.cors import cors_allow_credentials, cors_allowed_origins
from mockmate.core.errors import register_exception_handlers
from mockmate.core.rate_limit import limiter
from mockmate.core.config import settings
from mockmate.core.lifespan import lifespan

logging.basicConfig(level=settings.log_level, format="%(message)s")
if settings.sentry_dsn:
    sentry_sdk.init(dsn=settings.sentry_dsn)

app = FastAPI(title="MockMate API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_allowed_origins(),
    allow_credentials=cors_allow_credentials(),
    allow_methods=["*"],
    allow_headers=["*"],
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)
register_exception_handlers(app)

app.include_router(health_router, prefix="/api", tags=["Health"])
app.include_router(interview_router, prefix="/api", tags=["Interview"])
app.include_router(debug_router, prefix="/api", tags=["Debug"])


@app.get("/")
async def root():
    return {"message": "MockMate Backend server is running!"}


def run() -> None:
    uvicorn.run("mockmate.main:app", host=settings.host, port=settings.port)
