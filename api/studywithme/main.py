from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
import logging
import traceback
from studywithme.core.config import settings
from studywithme.core.database import engine as default_engine, init_db
from studywithme.core.exceptions import (
    StudyWithMeException,
    ValidationError,
    NotFoundError,
)
from studywithme.services.event_service import EventEmitter
from studywithme.services.flashcard_service import FlashcardService
from studywithme.services.quiz_service import QuizService
from studywithme.services.reward_service import RewardService
from studywithme.services.storage_service import SnapshotStorage
from studywithme.utils.time_utils import now_ms

# Import API router
from studywithme.api.v1 import api_router

logger = logging.getLogger(__name__)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log validation errors with full details for debugging."""
    body = await request.body()
    logger.error(f"Validation error on {request.method} {request.url.path}")
    logger.error(f"Validation errors: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "detail": exc.errors(),
            "body": body.decode('utf-8') if body else None,
        },
    )


async def studywithme_exception_handler(request: Request, exc: StudyWithMeException):
    """Turn application exceptions into a structured failure result."""
    if isinstance(exc, ValidationError):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, NotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    logger.warning(f"Application exception on {request.method} {request.url.path}: {type(exc).__name__}: {str(exc)}")
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "detail": str(exc), "type": type(exc).__name__},
    )


async def global_exception_handler(request: Request, exc: Exception):
    """Catch all unhandled exceptions so the session survives a failed call."""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}", exc_info=exc)

    # In development, show full error details
    if settings.is_development:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "detail": str(exc),
                "type": type(exc).__name__,
                "traceback": traceback.format_exc()
            },
        )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "detail": "An internal server error occurred. Please try again later.",
            "type": "InternalServerError"
        },
    )


def create_app(bind: Engine = None, clock=now_ms) -> FastAPI:
    """
    Build the application and its engines.

    The flashcard, quiz and reward services are created once here and shared
    by every request through app.state.

    Args:
        bind: Engine for the snapshot store (defaults to the configured database)
        clock: Source of epoch-millisecond timestamps
    """
    logging.basicConfig(level=settings.log_level.upper())

    db_engine = bind or default_engine
    init_db(db_engine)
    storage = SnapshotStorage(db_engine)

    rewards = RewardService(storage, clock=clock)

    app = FastAPI(title="StudyWithMe API", version="1.0.0")
    app.state.reward_service = rewards
    app.state.flashcard_service = FlashcardService(
        storage, events=EventEmitter("flashcards"), rewards=rewards, clock=clock
    )
    app.state.quiz_service = QuizService(
        storage, events=EventEmitter("quizzes"), rewards=rewards, clock=clock
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StudyWithMeException, studywithme_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        return {
            "message": "StudyWithMe API",
            "status": "running",
            "docs": {
                "swagger": "/docs",
                "redoc": "/redoc"
            }
        }

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    # Include API router
    app.include_router(api_router, prefix=settings.api_v1_prefix)

    logger.info("StudyWithMe API initialised")
    return app
