from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.adaptive_quiz import router as adaptive_quiz_router
from app.api.content import router as content_router
from app.api.health import router as health_router
from app.api.learners import router as learners_router
from app.api.metrics import router as metrics_router
from app.core.app_metrics import metrics_middleware
from app.core.errors import (
    GenerationFailure,
    InvalidTransition,
    generation_failure_handler,
    http_exception_handler,
    invalid_transition_handler,
    request_id_middleware,
    unhandled_exception_handler,
    validation_exception_handler,
)
from app.core.logging import configure_logging
from app.core.settings import settings
from app.memory.database import dispose_engine

configure_logging(settings.log_level, secrets=(settings.groq_api_key, settings.supabase_key))

CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type", "x-request-id"]

app = FastAPI(title="NeoLearn API", version="0.1.0")
app.include_router(health_router)
app.include_router(adaptive_quiz_router)
app.include_router(content_router)
app.include_router(learners_router)
app.include_router(metrics_router)
app.middleware("http")(metrics_middleware)
app.middleware("http")(request_id_middleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=CORS_ALLOW_HEADERS,
)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(GenerationFailure, generation_failure_handler)
app.add_exception_handler(InvalidTransition, invalid_transition_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


@app.on_event("shutdown")
async def on_shutdown():
    await dispose_engine()


def run() -> None:
    import uvicorn

    uvicorn.run("app.main:app", host=settings.app_host, port=settings.app_port, log_level=settings.log_level.lower())
