from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import PlannerError, Unauthenticated
from .logging_config import configure_logging
from .repositories import Repository, get_repository
from .routers import categories as categories_router
from .routers import todos as todos_router
from .settings import get_settings

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "todos",
        "description": "Recurring tasks: per-day and per-range views and per-date completion.",
    },
    {
        "name": "categories",
        "description": "User categories with unique names and default presets.",
    },
]

_settings = get_settings()
configure_logging(_settings.log_level)

app = FastAPI(
    title="Task Planner Backend",
    description="Backend API for recurring personal tasks with per-date completion tracking.",
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


# Global exception handlers for consistent JSON on validation errors
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


@app.exception_handler(PlannerError)
async def planner_exception_handler(request: Request, exc: PlannerError) -> JSONResponse:
    """
    Map domain errors onto the same envelope as validation errors.

    - Unauthenticated -> 401 with WWW-Authenticate: Basic
    - NotFoundOrUnauthorized -> 404
    - DuplicateName, ReferentialConflict -> 409
    """
    headers = {"WWW-Authenticate": "Basic"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error, "message": exc.message, "detail": exc.message},
        headers=headers,
    )


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check(repo: Repository = Depends(get_repository)):
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health and the active storage backend.
    """
    return {"message": "Healthy", "backend": repo.backend_name}


# Include routers
app.include_router(todos_router.router)
app.include_router(categories_router.router)
