"""FastAPI application exposing CRUD endpoints for user records."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, load_settings
from .middleware import build_middleware_chain
from .models import CreateUserRequest, UpdateUserRequest, User
from .security import TokenAllowList
from .service import (
    UserNotFoundError,
    UserPage,
    UserService,
    UserStoreError,
    UserValidationError,
)
from .store import UserStore

logger = logging.getLogger("users_api.api")

USER_NOT_FOUND = "User not found."


class UserResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: UUID
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    email: str
    created_at: datetime = Field(alias="createdAt")


class UserPageResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page: int
    page_size: int = Field(alias="pageSize")
    total: int
    items: List[UserResponse]


def user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        created_at=user.created_at,
    )


def page_to_response(page: UserPage) -> UserPageResponse:
    return UserPageResponse(
        page=page.page,
        page_size=page.page_size,
        total=page.total,
        items=[user_to_response(user) for user in page.items],
    )


def parse_user_id(raw: str) -> UUID:
    """Parse a path identifier; anything that is not a UUID cannot exist."""
    try:
        return UUID(raw)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND) from None


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request."
    first = errors[0]
    if first.get("type") == "json_invalid":
        return "Request body is not valid JSON."
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    message = str(first.get("msg", "Invalid value"))
    if location:
        return f"Invalid value for {'.'.join(location)}: {message}"
    return message


def create_app(
    *,
    settings: Settings | None = None,
    store: UserStore | None = None,
    service: UserService | None = None,
) -> FastAPI:
    if settings is None:
        settings = load_settings()
    if service is not None and store is not None:
        raise ValueError("Pass either a store or a service, not both")
    if service is None:
        service = UserService(store if store is not None else UserStore())
    if settings.seed_demo_user and len(service.store) == 0:
        seeded = service.seed_demo_user()
        logger.info("Seeded demo user %s", seeded.id)

    tokens = TokenAllowList(settings.api_tokens)
    development = settings.development

    app = FastAPI(
        title="Users API",
        description="In-memory user directory protected by static bearer tokens",
        version="1.0.0",
        docs_url="/docs" if development else None,
        redoc_url="/redoc" if development else None,
        openapi_url="/openapi.json" if development else None,
        middleware=build_middleware_chain(
            tokens,
            development=development,
            exempt_prefixes=settings.auth_exempt_prefixes,
        ),
    )
    app.state.settings = settings
    app.state.service = service
    app.state.store = service.store

    def get_service() -> UserService:
        return service

    @app.get("/health")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/users", response_model=UserPageResponse, name="get_users")
    async def list_users(
        page: Optional[int] = Query(default=None),
        page_size: Optional[int] = Query(default=None, alias="pageSize"),
        search: Optional[str] = Query(default=None),
        users: UserService = Depends(get_service),
    ) -> UserPageResponse:
        try:
            result = users.list_users(page=page, page_size=page_size, search=search)
        except Exception as exc:
            logger.exception("Error in GET /users")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to retrieve users.",
            ) from exc
        return page_to_response(result)

    @app.get("/users/{user_id}", response_model=UserResponse, name="get_user_by_id")
    async def read_user(user_id: str, users: UserService = Depends(get_service)) -> UserResponse:
        key = parse_user_id(user_id)
        try:
            user = users.get_user(key)
        except UserNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND) from exc
        except Exception as exc:
            logger.exception("Error in GET /users/%s", user_id)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to retrieve user.",
            ) from exc
        return user_to_response(user)

    @app.post(
        "/users",
        response_model=UserResponse,
        status_code=status.HTTP_201_CREATED,
        name="create_user",
    )
    async def create_user(
        response: Response,
        payload: Optional[CreateUserRequest] = Body(default=None),
        users: UserService = Depends(get_service),
    ) -> UserResponse:
        try:
            user = users.create_user(payload)
        except UserValidationError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
        except UserStoreError as exc:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create user.",
            ) from exc
        except Exception as exc:
            logger.exception("Error in POST /users")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create user.",
            ) from exc
        response.headers["Location"] = f"/users/{user.id}"
        return user_to_response(user)

    @app.put("/users/{user_id}", response_model=UserResponse, name="update_user")
    async def update_user(
        user_id: str,
        payload: Optional[UpdateUserRequest] = Body(default=None),
        users: UserService = Depends(get_service),
    ) -> UserResponse:
        key = parse_user_id(user_id)
        try:
            user = users.update_user(key, payload)
        except UserNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND) from exc
        except UserValidationError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
        except Exception as exc:
            logger.exception("Error in PUT /users/%s", user_id)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to update user.",
            ) from exc
        return user_to_response(user)

    @app.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT, name="delete_user")
    async def delete_user(user_id: str, users: UserService = Depends(get_service)) -> Response:
        key = parse_user_id(user_id)
        try:
            users.delete_user(key)
        except UserNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND) from exc
        except Exception as exc:
            logger.exception("Error in DELETE /users/%s", user_id)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to delete user.",
            ) from exc
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(_: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(_: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": _describe_validation_error(exc)},
        )

    return app


__all__ = ["UserPageResponse", "UserResponse", "create_app", "page_to_response", "user_to_response"]
