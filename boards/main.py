from contextlib import asynccontextmanager
from datetime import datetime, timezone
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
import logging

from boards.api.api import api_router
from boards.core.config import settings
from boards.core.exceptions import BoardsError, RequestValidationFailed
from boards.database import Base, engine
from boards.monitoring.performance import performance_monitor
from boards.utils.logging import setup_logging

logger = logging.getLogger(__name__)

VALUE_ERROR_PREFIX = "Value error, "


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for the FastAPI application."""
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    logger.info(f"Starting {settings.PROJECT_NAME}", extra={'environment': settings.ENVIRONMENT})
    try:
        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except SQLAlchemyError as e:
        logger.error(f"Error during startup: {e}")
        raise

    yield

    logger.info("Closing database connections...")
    engine.dispose()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.APP_VERSION,
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    lifespan=lifespan
)

# Set up CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _validation_details(errors) -> list:
    details = []
    for error in errors:
        loc = [str(part) for part in error.get('loc', ())]
        field = ".".join(loc[1:]) if len(loc) > 1 else (loc[0] if loc else "")
        message = error.get('msg', '')
        if message.startswith(VALUE_ERROR_PREFIX):
            message = message[len(VALUE_ERROR_PREFIX):]
        details.append({'field': field, 'message': message})
    return details


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = _validation_details(exc.errors())
    logger.debug("Rejected request", extra={'path': request.url.path, 'details': details})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={'error': 'Validation failed', 'details': details}
    )


@app.exception_handler(RequestValidationFailed)
async def request_validation_failed_handler(request: Request, exc: RequestValidationFailed):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            'error': 'Validation failed',
            'details': [{'field': exc.field, 'message': exc.message}]
        }
    )


@app.exception_handler(BoardsError)
async def boards_exception_handler(request: Request, exc: BoardsError):
    if exc.status_code >= 500:
        logger.error(f"Request failed: {exc.message}", extra={'path': request.url.path})
    return JSONResponse(status_code=exc.status_code, content={'error': exc.message})


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Database error", exc_info=exc, extra={'path': request.url.path})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={'error': 'Internal server error'}
    )


app.include_router(api_router, prefix=settings.API_PREFIX)


@app.get("/healthz")
def health_check():
    return {'status': 'ok', 'timestamp': datetime.now(timezone.utc).isoformat()}


@app.get(f"{settings.API_PREFIX}/metrics")
def get_metrics():
    """Operation timings collected since start (or the last reset)."""
    return performance_monitor.get_metrics()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("boards.main:app", host=settings.HOST, port=settings.PORT, reload=False)
