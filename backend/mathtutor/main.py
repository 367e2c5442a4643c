import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from datetime import datetime

import sentry_sdk
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mathtutor.config import (
    ALLOWED_ORIGINS,
    APP_NAME,
    APP_VERSION,
    ENVIRONMENT,
    LOG_LEVEL,
    PENDING_SWEEP_INTERVAL_SECONDS,
    REDIS_URL,
    SENTRY_DSN,
    is_production,
)
from mathtutor.database import SessionLocal, init_db
from mathtutor.exceptions import MathTutorError
from mathtutor.middleware.request_logging import RequestLoggingMiddleware
from mathtutor.repositories.answer_repository import AnswerRepository
from mathtutor.repositories.question_repository import QuestionRepository
from mathtutor.repositories.user_repository import UserRepository
from mathtutor.routers import health, questions, users
from mathtutor.schemas.common import error_body
from mathtutor.services.cache_service import CacheService
from mathtutor.services.observability import LoggingObserver
from mathtutor.services.question_service import QuestionService, run_pending_sweeper
from mathtutor.services.solver import Solver

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Initialize Sentry for error monitoring
if SENTRY_DSN:
    sentry_sdk.init(
        dsn=SENTRY_DSN,
        traces_sample_rate=0.1,  # 10% of transactions for performance monitoring
        environment=ENVIRONMENT,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler - runs on startup and shutdown."""
    init_db()

    app.state.cache = CacheService(redis_url=REDIS_URL)
    await app.state.cache.connect()
    app.state.solver = Solver.from_config()
    app.state.observer = LoggingObserver()

    sweeper = None
    if PENDING_SWEEP_INTERVAL_SECONDS > 0:
        @contextlib.contextmanager
        def sweeper_service():
            db = SessionLocal()
            try:
                yield QuestionService(
                    users=UserRepository(db),
                    questions=QuestionRepository(db),
                    answers=AnswerRepository(db),
                    cache=app.state.cache,
                    solver=app.state.solver,
                    observer=app.state.observer,
                )
            finally:
                db.close()

        sweeper = asyncio.create_task(run_pending_sweeper(sweeper_service, PENDING_SWEEP_INTERVAL_SECONDS))
    else:
        logger.info("Pending question sweeper disabled (PENDING_SWEEP_INTERVAL_SECONDS=0)")

    logger.info(f"{APP_NAME} started (environment: {ENVIRONMENT}, cache: {app.state.cache.backend})")

    yield  # Application runs here

    # SHUTDOWN
    logger.info("Shutting down...")
    if sweeper is not None:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
    await app.state.cache.disconnect()


app = FastAPI(
    title=APP_NAME,
    description="""
## AI Math Tutor API

Submit free-text math questions and receive step-by-step solutions.

### Features
- **Step-by-step answers** - OpenAI first, local Ollama model as fallback, offline answers as last resort
- **Answer caching** - repeated questions are answered from Redis without calling a model
- **History** - paginated per-user question history
- **Bulk ingest** - up to 50 questions solved concurrently
    """,
    version=APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Authorization", "Content-Type", "X-Requested-With", "Accept"],
)
app.add_middleware(RequestLoggingMiddleware)

app.include_router(health.router)
app.include_router(users.router)
app.include_router(questions.router)


# ============================================================================
# ERROR HANDLERS
# ============================================================================

@app.exception_handler(MathTutorError)
async def math_tutor_error_handler(request: Request, exc: MathTutorError):
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.error, exc.message))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == status.HTTP_404_NOT_FOUND and detail == "Not Found":
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body("Route not found", f"Cannot {request.method} {request.url.path}"),
        )
    return JSONResponse(status_code=exc.status_code, content=error_body(detail))


def _validation_messages(exc: RequestValidationError) -> str:
    messages = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
        messages.append(f"{field}: {err['msg']}" if field else err["msg"])
    return ", ".join(messages)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Validation failed", _validation_messages(exc)),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    message = "An unexpected error occurred" if is_production() else str(exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error", message),
    )


@app.get("/")
def root():
    return {
        "success": True,
        "message": "AI Math Tutor API is running",
        "data": {
            "version": APP_VERSION,
            "environment": ENVIRONMENT,
            "timestamp": datetime.utcnow().isoformat(),
            "docs": "/docs",
        },
    }
