"""HTTP route definitions for user and business authentication."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from ..domain.account import BusinessAccount, UserAccount
from ..domain.errors import AccountError
from ..domain.service import AccountService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

LOGIN_SUCCESSFUL = "Login successful"
USER_UPDATED = "User updated successfully"
MALFORMED_BODY = "Malformed JSON body"


class UserRegistrationResponse(BaseModel):
    """Public projection returned after a user signs up."""

    id: str
    email: str
    username: str | None
    name: str
    age: int | None

    @classmethod
    def from_domain(cls, user: UserAccount) -> "UserRegistrationResponse":
        return cls(id=user.id, email=user.email, username=user.username, name=user.name, age=user.age)


class UserProfile(BaseModel):
    """Serialised representation of a `UserAccount` without its password hash."""

    id: str
    email: str
    username: str | None
    name: str
    surname: str | None
    age: int | None

    @classmethod
    def from_domain(cls, user: UserAccount) -> "UserProfile":
        """Build a response model from the domain aggregate."""
        return cls(
            id=user.id,
            email=user.email,
            username=user.username,
            name=user.name,
            surname=user.surname,
            age=user.age,
        )


class BusinessRegistrationResponse(BaseModel):
    """Public projection returned after a business signs up."""

    id: str
    name: str
    busi_username: str
    email: str
    category: str
    description: str | None
    address: str | None

    @classmethod
    def from_domain(cls, business: BusinessAccount) -> "BusinessRegistrationResponse":
        return cls(
            id=business.id,
            name=business.name,
            busi_username=business.busi_username,
            email=business.email,
            category=business.category,
            description=business.description,
            address=business.address,
        )


class BusinessProfile(BaseModel):
    """Serialised representation of a `BusinessAccount` without its password hash."""

    id: str
    name: str
    email: str
    busi_username: str
    category: str
    rating: float | None
    description: str | None
    address: str | None

    @classmethod
    def from_domain(cls, business: BusinessAccount) -> "BusinessProfile":
        """Build a response model from the domain aggregate."""
        return cls(
            id=business.id,
            name=business.name,
            email=business.email,
            busi_username=business.busi_username,
            category=business.category,
            rating=business.rating,
            description=business.description,
            address=business.address,
        )


class UserLoginResponse(BaseModel):
    message: str = LOGIN_SUCCESSFUL
    token: str
    user: UserProfile


class BusinessLoginResponse(BaseModel):
    message: str = LOGIN_SUCCESSFUL
    token: str
    user: BusinessProfile


class UserUpdateResponse(BaseModel):
    """Result of a partial user update; ``updatedUser`` is null when no user matched."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = USER_UPDATED
    updated_user: UserProfile | None = Field(default=None, alias="updatedUser")


def get_service(request: Request) -> AccountService:
    """Resolve the `AccountService` stored on the FastAPI application state."""
    service: AccountService = request.app.state.account_service
    return service


def _error_response(exc: AccountError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request failed with %s: %s", exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def _as_mapping(payload: Any) -> dict[str, Any]:
    # Arrays, scalars and an absent body carry no fields.
    return payload if isinstance(payload, dict) else {}


async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report bodies FastAPI could not parse with the same ``{"error": ...}`` shape."""
    logger.info("rejected unparseable request body on %s", request.url.path)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": MALFORMED_BODY})


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, _request_validation_error)


@router.post(
    "/users/register",
    response_model=UserRegistrationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_user(
    payload: Any = Body(default=None),
    service: AccountService = Depends(get_service),
) -> UserRegistrationResponse | JSONResponse:
    """Create a user account."""
    try:
        user = await service.register_user(_as_mapping(payload))
    except AccountError as exc:
        return _error_response(exc)
    return UserRegistrationResponse.from_domain(user)


@router.post("/users/login", response_model=UserLoginResponse)
async def login_user(
    payload: Any = Body(default=None),
    service: AccountService = Depends(get_service),
) -> UserLoginResponse | JSONResponse:
    """Exchange user credentials for a session token."""
    try:
        result = await service.login_user(_as_mapping(payload))
    except AccountError as exc:
        return _error_response(exc)
    return UserLoginResponse(token=result.token, user=UserProfile.from_domain(result.account))


@router.put("/users/{user_id}", response_model=UserUpdateResponse)
async def update_user(
    user_id: str,
    payload: Any = Body(default=None),
    service: AccountService = Depends(get_service),
) -> UserUpdateResponse | JSONResponse:
    """Replace the supplied fields of a user account."""
    try:
        user = await service.update_user(user_id, _as_mapping(payload))
    except AccountError as exc:
        return _error_response(exc)
    return UserUpdateResponse(updated_user=UserProfile.from_domain(user) if user else None)


@router.post(
    "/businesses/register",
    response_model=BusinessRegistrationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_business(
    payload: Any = Body(default=None),
    service: AccountService = Depends(get_service),
) -> BusinessRegistrationResponse | JSONResponse:
    """Create a business account."""
    try:
        business = await service.register_business(_as_mapping(payload))
    except AccountError as exc:
        return _error_response(exc)
    return BusinessRegistrationResponse.from_domain(business)


@router.post("/businesses/login", response_model=BusinessLoginResponse)
async def login_business(
    payload: Any = Body(default=None),
    service: AccountService = Depends(get_service),
) -> BusinessLoginResponse | JSONResponse:
    """Exchange business credentials for a session token."""
    try:
        result = await service.login_business(_as_mapping(payload))
    except AccountError as exc:
        return _error_response(exc)
    return BusinessLoginResponse(
        token=result.token, user=BusinessProfile.from_domain(result.account)
    )
