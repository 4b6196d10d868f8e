import logging
from zoneinfo import ZoneInfoNotFoundError

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .settings import get_settings
from .routers import board as board_router
from .timezone_utils import environment_timezone

_settings = get_settings()

logging.basicConfig(
    level=_settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "board",
        "description": "Timezone-aware task preparation, formatting and kanban board views.",
    },
]

app = FastAPI(
    title="Todo Board",
    description="Presentation service for a personal to-do board with timezone-aware due dates.",
    version="0.1.0",
    openapi_tags=openapi_tags,
)

# Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
allow_all = (_settings.cors_allow_origins == ["*"]) or (len(_settings.cors_allow_origins) == 0)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all else _settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Return a consistent JSON structure for request validation errors.

    Response format:
        {
            "error": "ValidationError",
            "detail": [... pydantic/fastapi error details ...],
            "message": "Request validation failed"
        }
    """
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            "detail": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(ZoneInfoNotFoundError)
async def unknown_timezone_handler(request: Request, exc: ZoneInfoNotFoundError) -> JSONResponse:
    """
    Report an unknown IANA zone name as a client error instead of substituting UTC.
    """
    logger.warning("Unknown timezone on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=400,
        content={
            "error": "UnknownTimezone",
            "message": str(exc).strip("'\""),
        },
    )


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check():
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health and the environment zone.
    """
    return {"message": "Healthy", "timezone": environment_timezone()}


# Include routers
app.include_router(board_router.router)
