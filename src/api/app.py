from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import SQLModel
from libs.result import Error
from .error import ClientError, ServerError
from .log_config import log_requests, setup_logging
import logging

logger = logging.getLogger(__name__)


async def handle_client_error(request: Request, exc: ClientError):
    error_dict = {"code": exc.base_error.code, "message": exc.base_error.message}
    logger.warning(f"Client error: {error_dict}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def handle_server_error(request: Request, exc: ServerError):
    logger.error(f"Server error: {exc.base_error.code} ({exc.base_error.message})")
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def handle_validation_error(request: Request, exc: RequestValidationError):
    # loc is ("body", <field>, ...)
    fields = [".".join(str(part) for part in err.get("loc", ())[1:]) for err in exc.errors()]
    logger.warning(f"Validation error on {request.url.path}: {fields}")
    error = ClientError(
        Error("VALIDATION_ERROR", "Missing or malformed request fields."),
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    body = error.to_body()
    body["error"]["fields"] = fields
    return JSONResponse(status_code=error.status_code, content=body)


@asynccontextmanager
async def create_tables(app: FastAPI):
    from src.depends import engine

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield
    await engine.dispose()


def create_app(ApplicationConfig) -> FastAPI:
    setup_logging(ApplicationConfig.LOG_LEVEL)

    lifespan = create_tables if ApplicationConfig.CREATE_TABLES_ON_STARTUP else None
    app = FastAPI(title="Password Reset API", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    if ApplicationConfig.ENABLE_LOGGING_MIDDLEWARE:
        app.middleware("http")(log_requests)

    from src.api.routes import health_check, password

    app.include_router(health_check.router, tags=["Health"])
    app.include_router(password.router, tags=["Password Reset"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)

    return app
