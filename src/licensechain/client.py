"""Python client for the LicenseChain license-management API."""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Type, TypeVar, Union

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .cancellation import CancelToken
from .config import ClientConfig
from .errors import validation_error
from .models import (
    Analytics,
    APIKeyResponse,
    Application,
    ChangePasswordRequest,
    CreateApplicationRequest,
    CreateLicenseRequest,
    CreateProductRequest,
    CreateUserRequest,
    CreateWebhookRequest,
    HealthResponse,
    License,
    LicenseStats,
    LicenseValidationResult,
    LoginRequest,
    LoginResponse,
    Page,
    PingResponse,
    Product,
    ProductStats,
    RegisterUserRequest,
    ResetPasswordRequest,
    SystemStatus,
    TokenRefreshResponse,
    UpdateApplicationRequest,
    UpdateLicenseRequest,
    UpdateProductRequest,
    UpdateUserRequest,
    UpdateWebhookRequest,
    UsageStats,
    User,
    UserStats,
    Webhook,
)
from .request import OutgoingRequest, path_segment
from .transport import AsyncTransport, Transport
from .utils import require_not_empty, validate_email, validate_pagination

M = TypeVar("M", bound=BaseModel)
Payload = Union[BaseModel, Mapping[str, Any]]


def _coerce(payload: Payload, model: Type[M]) -> M:
    if isinstance(payload, model):
        return payload
    data = payload.model_dump(exclude_none=True) if isinstance(payload, BaseModel) else payload
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise validation_error(f"Invalid {model.__name__}: {exc}") from exc


def _page_params(page: int, limit: int, **filters: Any) -> Dict[str, Any]:
    page, limit = validate_pagination(page, limit)
    params: Dict[str, Any] = {"page": page, "limit": limit}
    params.update({key: value for key, value in filters.items() if value not in (None, "")})
    return params


def _check_email(email: str) -> None:
    if not validate_email(email):
        raise validation_error(f"Invalid email address: {email!r}")


def _validation_request(license_key: str, app_id: Optional[str]) -> OutgoingRequest:
    require_not_empty(license_key, "license_key")
    body = {"license_key": license_key.strip()}
    if app_id:
        body["app_id"] = app_id
    return OutgoingRequest("POST", "/licenses/validate", body=body)


class _Endpoints(ABC):
    """Endpoint definitions shared by the blocking and asyncio clients.

    Each method validates its input locally, builds an :class:`OutgoingRequest`
    and hands it to ``_call``. The blocking client returns the decoded value,
    the asyncio client returns an awaitable of it, so on
    :class:`AsyncLicenseChainClient` every return annotation below reads as
    ``Awaitable[...]``.
    """

    @abstractmethod
    def _call(
        self,
        request: OutgoingRequest,
        result_type: Optional[Any] = None,
        transform: Optional[Callable[[Any], Any]] = None,
    ) -> Any:
        """Execute ``request`` and decode the body into ``result_type``."""

    # Authentication

    def register_user(self, payload: Payload) -> User:
        body = _coerce(payload, RegisterUserRequest)
        _check_email(body.email)
        return self._call(OutgoingRequest("POST", "/auth/register", body=body), User)

    def login(self, email: str, password: str) -> LoginResponse:
        body = _coerce({"email": email, "password": password}, LoginRequest)
        _check_email(body.email)
        return self._call(OutgoingRequest("POST", "/auth/login", body=body), LoginResponse)

    def logout(self) -> None:
        return self._call(OutgoingRequest("POST", "/auth/logout"))

    def refresh_token(self, refresh_token: str) -> TokenRefreshResponse:
        require_not_empty(refresh_token, "refresh_token")
        body = {"refresh_token": refresh_token}
        return self._call(OutgoingRequest("POST", "/auth/refresh", body=body), TokenRefreshResponse)

    def get_user_profile(self) -> User:
        return self._call(OutgoingRequest("GET", "/auth/me"), User)

    def update_user_profile(self, payload: Payload) -> User:
        body = _coerce(payload, UpdateUserRequest)
        if body.email is not None:
            _check_email(body.email)
        return self._call(OutgoingRequest("PATCH", "/auth/me", body=body), User)

    def change_password(self, current_password: str, new_password: str) -> None:
        body = _coerce(
            {"current_password": current_password, "new_password": new_password},
            ChangePasswordRequest,
        )
        return self._call(OutgoingRequest("PATCH", "/auth/password", body=body))

    def request_password_reset(self, email: str) -> None:
        _check_email(email)
        return self._call(OutgoingRequest("POST", "/auth/forgot-password", body={"email": email}))

    def reset_password(self, token: str, new_password: str) -> None:
        body = _coerce({"token": token, "new_password": new_password}, ResetPasswordRequest)
        return self._call(OutgoingRequest("POST", "/auth/reset-password", body=body))

    # Applications

    def create_application(self, payload: Payload) -> Application:
        body = _coerce(payload, CreateApplicationRequest)
        return self._call(OutgoingRequest("POST", "/apps", body=body), Application)

    def list_applications(
        self,
        page: int = 1,
        limit: int = 10,
        *,
        status: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> Page[Application]:
        params = _page_params(page, limit, status=status, sort_by=sort_by, sort_order=sort_order)
        return self._call(OutgoingRequest("GET", "/apps", params=params), Page[Application])

    def get_application(self, app_id: str) -> Application:
        return self._call(OutgoingRequest("GET", f"/apps/{path_segment(app_id, 'app_id')}"), Application)

    def update_application(self, app_id: str, payload: Payload) -> Application:
        body = _coerce(payload, UpdateApplicationRequest)
        path = f"/apps/{path_segment(app_id, 'app_id')}"
        return self._call(OutgoingRequest("PATCH", path, body=body), Application)

    def delete_application(self, app_id: str) -> None:
        return self._call(OutgoingRequest("DELETE", f"/apps/{path_segment(app_id, 'app_id')}"))

    def regenerate_api_key(self, app_id: str) -> APIKeyResponse:
        path = f"/apps/{path_segment(app_id, 'app_id')}/regenerate-key"
        return self._call(OutgoingRequest("POST", path), APIKeyResponse)

    # Licenses

    def create_license(self, payload: Payload) -> License:
        body = _coerce(payload, CreateLicenseRequest)
        return self._call(OutgoingRequest("POST", "/licenses", body=body), License)

    def get_license(self, license_id: str) -> License:
        return self._call(OutgoingRequest("GET", f"/licenses/{path_segment(license_id, 'license_id')}"), License)

    def list_licenses(
        self,
        page: int = 1,
        limit: int = 10,
        *,
        app_id: Optional[str] = None,
        status: Optional[str] = None,
        user_id: Optional[str] = None,
        user_email: Optional[str] = None,
        product_id: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> Page[License]:
        params = _page_params(
            page,
            limit,
            app_id=app_id,
            status=status,
            user_id=user_id,
            user_email=user_email,
            product_id=product_id,
            sort_by=sort_by,
            sort_order=sort_order,
        )
        return self._call(OutgoingRequest("GET", "/licenses", params=params), Page[License])

    def update_license(self, license_id: str, payload: Payload) -> License:
        body = _coerce(payload, UpdateLicenseRequest)
        path = f"/licenses/{path_segment(license_id, 'license_id')}"
        return self._call(OutgoingRequest("PATCH", path, body=body), License)

    def delete_license(self, license_id: str) -> None:
        return self._call(OutgoingRequest("DELETE", f"/licenses/{path_segment(license_id, 'license_id')}"))

    def validate_license_details(self, license_key: str, app_id: Optional[str] = None) -> LicenseValidationResult:
        return self._call(_validation_request(license_key, app_id), LicenseValidationResult)

    def validate_license(self, license_key: str, app_id: Optional[str] = None) -> bool:
        return self._call(
            _validation_request(license_key, app_id),
            LicenseValidationResult,
            lambda result: bool(result and result.valid),
        )

    def revoke_license(self, license_id: str, reason: Optional[str] = None) -> None:
        body = {"reason": reason} if reason else {}
        path = f"/licenses/{path_segment(license_id, 'license_id')}/revoke"
        return self._call(OutgoingRequest("PATCH", path, body=body))

    def activate_license(self, license_id: str) -> None:
        path = f"/licenses/{path_segment(license_id, 'license_id')}/activate"
        return self._call(OutgoingRequest("PATCH", path))

    def extend_license(self, license_id: str, expires_at: Union[datetime, str]) -> None:
        if isinstance(expires_at, datetime):
            expires_at = expires_at.isoformat()
        require_not_empty(expires_at, "expires_at")
        path = f"/licenses/{path_segment(license_id, 'license_id')}/extend"
        return self._call(OutgoingRequest("PATCH", path, body={"expires_at": expires_at}))

    def get_license_stats(self) -> LicenseStats:
        return self._call(OutgoingRequest("GET", "/licenses/stats"), LicenseStats)

    def get_license_analytics(self, license_id: str) -> Analytics:
        path = f"/licenses/{path_segment(license_id, 'license_id')}/analytics"
        return self._call(OutgoingRequest("GET", path), Analytics)

    # Users

    def create_user(self, payload: Payload) -> User:
        body = _coerce(payload, CreateUserRequest)
        _check_email(body.email)
        return self._call(OutgoingRequest("POST", "/users", body=body), User)

    def get_user(self, user_id: str) -> User:
        return self._call(OutgoingRequest("GET", f"/users/{path_segment(user_id, 'user_id')}"), User)

    def list_users(self, page: int = 1, limit: int = 10) -> Page[User]:
        return self._call(OutgoingRequest("GET", "/users", params=_page_params(page, limit)), Page[User])

    def update_user(self, user_id: str, payload: Payload) -> User:
        body = _coerce(payload, UpdateUserRequest)
        if body.email is not None:
            _check_email(body.email)
        path = f"/users/{path_segment(user_id, 'user_id')}"
        return self._call(OutgoingRequest("PATCH", path, body=body), User)

    def delete_user(self, user_id: str) -> None:
        return self._call(OutgoingRequest("DELETE", f"/users/{path_segment(user_id, 'user_id')}"))

    def get_user_stats(self) -> UserStats:
        return self._call(OutgoingRequest("GET", "/users/stats"), UserStats)

    # Products

    def create_product(self, payload: Payload) -> Product:
        body = _coerce(payload, CreateProductRequest)
        return self._call(OutgoingRequest("POST", "/products", body=body), Product)

    def get_product(self, product_id: str) -> Product:
        return self._call(OutgoingRequest("GET", f"/products/{path_segment(product_id, 'product_id')}"), Product)

    def list_products(self, page: int = 1, limit: int = 10) -> Page[Product]:
        return self._call(OutgoingRequest("GET", "/products", params=_page_params(page, limit)), Page[Product])

    def update_product(self, product_id: str, payload: Payload) -> Product:
        body = _coerce(payload, UpdateProductRequest)
        path = f"/products/{path_segment(product_id, 'product_id')}"
        return self._call(OutgoingRequest("PATCH", path, body=body), Product)

    def delete_product(self, product_id: str) -> None:
        return self._call(OutgoingRequest("DELETE", f"/products/{path_segment(product_id, 'product_id')}"))

    def get_product_stats(self) -> ProductStats:
        return self._call(OutgoingRequest("GET", "/products/stats"), ProductStats)

    # Webhooks

    def create_webhook(self, payload: Payload) -> Webhook:
        body = _coerce(payload, CreateWebhookRequest)
        return self._call(OutgoingRequest("POST", "/webhooks", body=body), Webhook)

    def get_webhook(self, webhook_id: str) -> Webhook:
        return self._call(OutgoingRequest("GET", f"/webhooks/{path_segment(webhook_id, 'webhook_id')}"), Webhook)

    def list_webhooks(
        self,
        page: int = 1,
        limit: int = 10,
        *,
        app_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Page[Webhook]:
        params = _page_params(page, limit, app_id=app_id, status=status)
        return self._call(OutgoingRequest("GET", "/webhooks", params=params), Page[Webhook])

    def update_webhook(self, webhook_id: str, payload: Payload) -> Webhook:
        body = _coerce(payload, UpdateWebhookRequest)
        path = f"/webhooks/{path_segment(webhook_id, 'webhook_id')}"
        return self._call(OutgoingRequest("PATCH", path, body=body), Webhook)

    def delete_webhook(self, webhook_id: str) -> None:
        return self._call(OutgoingRequest("DELETE", f"/webhooks/{path_segment(webhook_id, 'webhook_id')}"))

    def test_webhook(self, webhook_id: str) -> None:
        path = f"/webhooks/{path_segment(webhook_id, 'webhook_id')}/test"
        return self._call(OutgoingRequest("POST", path))

    # Analytics

    def get_analytics(
        self,
        *,
        app_id: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        metric: Optional[str] = None,
        period: Optional[str] = None,
    ) -> Analytics:
        params = {
            "app_id": app_id,
            "start_date": start_date,
            "end_date": end_date,
            "metric": metric,
            "period": period,
        }
        return self._call(OutgoingRequest("GET", "/analytics", params=params), Analytics)

    def get_usage_stats(
        self,
        *,
        app_id: Optional[str] = None,
        period: Optional[str] = None,
        granularity: Optional[str] = None,
    ) -> UsageStats:
        params = {"app_id": app_id, "period": period, "granularity": granularity}
        return self._call(OutgoingRequest("GET", "/analytics/usage", params=params), UsageStats)

    # System

    def health(self) -> HealthResponse:
        return self._call(OutgoingRequest("GET", "/health"), HealthResponse)

    def ping(self) -> PingResponse:
        return self._call(OutgoingRequest("GET", "/ping"), PingResponse)

    def get_system_status(self) -> SystemStatus:
        return self._call(OutgoingRequest("GET", "/status"), SystemStatus)


class LicenseChainClient(_Endpoints):
    def __init__(
        self,
        config: ClientConfig,
        *,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config
        self._transport = Transport(config, transport=transport, sleep=sleep)

    @classmethod
    def from_env(cls, **kwargs: Any) -> "LicenseChainClient":
        return cls(ClientConfig.from_env(), **kwargs)

    @property
    def config(self) -> ClientConfig:
        return self._config

    def __enter__(self) -> "LicenseChainClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _call(self, request, result_type=None, transform=None):
        value = self._transport.execute(request, result_type)
        return transform(value) if transform else value

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        body: Any = None,
        result_type: Optional[Any] = None,
        cancel: Optional[CancelToken] = None,
    ) -> Any:
        return self._transport.execute(
            OutgoingRequest(method, path, params=params, body=body),
            result_type,
            cancel=cancel,
        )

    def close(self) -> None:
        self._transport.close()


class AsyncLicenseChainClient(_Endpoints):
    def __init__(
        self,
        config: ClientConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._config = config
        self._transport = AsyncTransport(config, transport=transport, sleep=sleep)

    @classmethod
    def from_env(cls, **kwargs: Any) -> "AsyncLicenseChainClient":
        return cls(ClientConfig.from_env(), **kwargs)

    @property
    def config(self) -> ClientConfig:
        return self._config

    async def __aenter__(self) -> "AsyncLicenseChainClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _call(self, request, result_type=None, transform=None):
        return self._run(request, result_type, transform)

    async def _run(self, request, result_type, transform):
        value = await self._transport.execute(request, result_type)
        return transform(value) if transform else value

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        body: Any = None,
        result_type: Optional[Any] = None,
        cancel: Optional[CancelToken] = None,
    ) -> Any:
        return await self._transport.execute(
            OutgoingRequest(method, path, params=params, body=body),
            result_type,
            cancel=cancel,
        )

    async def close(self) -> None:
        await self._transport.close()


__all__ = ["AsyncLicenseChainClient", "LicenseChainClient"]
