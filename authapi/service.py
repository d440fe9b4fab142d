"""HTTP API exposing signup and login on top of the user document store."""

from __future__ import annotations

import logging
import os
from typing import Dict, Optional

import httpx
from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, StrictStr
from pydantic import ValidationError as SchemaValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth import MISSING_CREDENTIALS, AuthService
from .config import StoreSettings, load_store_settings, resolve_config_path
from .errors import AuthServiceError, StoreError, ValidationError
from .store import UserStore

logger = logging.getLogger("authgateway.service")

INVALID_JSON = "Request body must be valid JSON"
ROUTE_NOT_FOUND = "Route not found"

CORS_HEADERS: Dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

_FAILURE_PREFIXES: Dict[str, str] = {
    "/signup": "Signup failed",
    "/login": "Login failed",
}


class CredentialsRequest(BaseModel):
    email: Optional[StrictStr] = None
    password: Optional[StrictStr] = None


def message_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"message": message}, status_code=status_code, headers=dict(CORS_HEADERS))


async def _read_credentials(request: Request) -> CredentialsRequest:
    raw = await request.body()
    if not raw.strip():
        raise ValidationError(INVALID_JSON)
    try:
        return CredentialsRequest.model_validate_json(raw)
    except SchemaValidationError as exc:
        if any(error.get("type") == "json_invalid" for error in exc.errors()):
            raise ValidationError(INVALID_JSON) from exc
        raise ValidationError(MISSING_CREDENTIALS) from exc


def _failure_message(request: Request, exc: AuthServiceError) -> str:
    if isinstance(exc, StoreError):
        prefix = _FAILURE_PREFIXES.get(request.url.path, "Request failed")
        return f"{prefix}: {exc.message}"
    return exc.message


def _build_service_dependency(settings: StoreSettings, transport: Optional[httpx.AsyncBaseTransport]):
    def dependency() -> AuthService:
        return AuthService(UserStore(settings, transport=transport))

    return dependency


def register_auth_routes(app: FastAPI, *, auth_service) -> None:
    """Expose the signup, login and discovery endpoints on ``app``."""

    @app.options("/{path:path}")
    async def preflight(path: str) -> Response:
        return Response(status_code=status.HTTP_204_NO_CONTENT, headers=dict(CORS_HEADERS))

    @app.get("/")
    async def index() -> JSONResponse:
        return JSONResponse(
            {
                "message": "Auth API Server is running!",
                "endpoints": [
                    "POST /signup - Create new user",
                    "POST /login - User login",
                ],
            },
            headers={"Access-Control-Allow-Origin": "*"},
        )

    @app.post("/signup")
    async def signup(request: Request, service: AuthService = Depends(auth_service)) -> JSONResponse:
        credentials = await _read_credentials(request)
        message = await service.signup(credentials.email, credentials.password)
        return message_response(message, status.HTTP_201_CREATED)

    @app.post("/login")
    async def login(request: Request, service: AuthService = Depends(auth_service)) -> JSONResponse:
        credentials = await _read_credentials(request)
        message = await service.login(credentials.email, credentials.password)
        return message_response(message, status.HTTP_200_OK)


def register_error_handlers(app: FastAPI) -> None:
    """Map error types onto the JSON message envelope."""

    @app.exception_handler(AuthServiceError)
    async def handle_auth_error(request: Request, exc: AuthServiceError) -> JSONResponse:
        message = _failure_message(request, exc)
        if exc.status_code >= 500:
            logger.error("%s %s: %s", request.method, request.url.path, message)
        return message_response(message, exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
            return message_response(ROUTE_NOT_FOUND, status.HTTP_404_NOT_FOUND)
        return message_response(str(exc.detail), exc.status_code)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        prefix = _FAILURE_PREFIXES.get(request.url.path, "Request failed")
        logger.exception("Unhandled error serving %s %s", request.method, request.url.path)
        return message_response(f"{prefix}: {exc}", status.HTTP_500_INTERNAL_SERVER_ERROR)


def create_app(
    *,
    settings: StoreSettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Instantiate the FastAPI application for the auth gateway."""

    store_settings = settings or load_store_settings(
        resolve_config_path(os.getenv("AUTH_CONFIG_PATH"))
    )
    if store_settings.lookup_errors_as_absent:
        logger.info("Store lookup failures will be reported as missing users.")

    app = FastAPI(
        title="Auth Gateway",
        version="0.1.0",
        description="Signup and login backed by a remote JSON document store.",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = store_settings

    register_error_handlers(app)
    register_auth_routes(
        app,
        auth_service=_build_service_dependency(store_settings, transport),
    )

    return app


__all__ = ["CORS_HEADERS", "CredentialsRequest", "create_app", "message_response"]
