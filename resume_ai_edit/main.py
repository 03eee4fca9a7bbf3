import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi import _rate_limit_exceeded_handler
import sentry_sdk

from resume_ai_edit.api.v1.health import router as health_router
from resume_ai_edit.api.v1.ai_edit import router as ai_edit_router
from resume_ai_edit.core.cors import cors_allow_origin_regex, cors_allowed_origins
from resume_ai_edit.core.rate_limit import limiter
from resume_ai_edit.core.config import settings
from dotenv import load_dotenv
from resume_ai_edit.core.lifespan import lifespan

load_dotenv()
logging.basicConfig(level=settings.log_level, format="%(message)s")
if settings.sentry_dsn:
    sentry_sdk.init(dsn=settings.sentry_dsn)

app = FastAPI(title="Resume AI Edit API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_allowed_origins(),
    allow_origin_regex=cors_allow_origin_regex(),
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

app.include_router(health_router, prefix="/v1", tags=["Health"])
app.include_router(ai_edit_router, prefix="/v1", tags=["AI Edit"])
