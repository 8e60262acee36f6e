"""Pydantic models describing LicenseChain API resources."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class APIModel(BaseModel):
    model_config = ConfigDict(extra="allow")


class ErrorResponse(APIModel):
    error: str = ""
    message: Optional[str] = None
    code: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: Optional[str] = None


class Page(APIModel, Generic[T]):
    data: List[T] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10
    total_pages: Optional[int] = None


# Applications


class Application(APIModel):
    id: str
    name: str
    description: Optional[str] = None
    api_key: Optional[str] = None
    webhook_url: Optional[str] = None
    allowed_origins: List[str] = Field(default_factory=list)
    status: Optional[str] = None
    license_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CreateApplicationRequest(APIModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    webhook_url: Optional[str] = None
    allowed_origins: Optional[List[str]] = None


class UpdateApplicationRequest(APIModel):
    name: Optional[str] = None
    description: Optional[str] = None
    webhook_url: Optional[str] = None
    allowed_origins: Optional[List[str]] = None
    status: Optional[str] = None


class APIKeyResponse(APIModel):
    api_key: str
    created_at: Optional[datetime] = None


# Licenses


class License(APIModel):
    id: str
    user_id: Optional[str] = None
    product_id: Optional[str] = None
    license_key: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class CreateLicenseRequest(APIModel):
    user_id: str = Field(..., min_length=1)
    product_id: str = Field(..., min_length=1)
    expires_at: Optional[datetime] = None
    metadata: Optional[Dict[str, Any]] = None


class UpdateLicenseRequest(APIModel):
    status: Optional[str] = None
    expires_at: Optional[datetime] = None
    metadata: Optional[Dict[str, Any]] = None


class LicenseValidationResult(APIModel):
    valid: bool
    license: Optional[Dict[str, Any]] = None
    user: Optional[Dict[str, Any]] = None
    app: Optional[Dict[str, Any]] = None
    expires_at: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class LicenseStats(APIModel):
    total: int = 0
    active: int = 0
    expired: int = 0
    revoked: int = 0
    revenue: float = 0.0


# Users


class User(APIModel):
    id: str
    email: str
    name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class CreateUserRequest(APIModel):
    email: str = Field(..., min_length=3)
    name: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class UpdateUserRequest(APIModel):
    email: Optional[str] = None
    name: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


# Authentication


class RegisterUserRequest(APIModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)
    name: Optional[str] = None
    company: Optional[str] = None


class LoginRequest(APIModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)


class LoginResponse(APIModel):
    user: Optional[User] = None
    access_token: str
    refresh_token: Optional[str] = None
    token_type: Optional[str] = None
    expires_in: Optional[int] = None


class TokenRefreshResponse(APIModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None


class ChangePasswordRequest(APIModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


class ResetPasswordRequest(APIModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


class UserStats(APIModel):
    total: int = 0
    active: int = 0
    inactive: int = 0


# Products


class Product(APIModel):
    id: str
    name: str
    description: Optional[str] = None
    price: float = 0.0
    currency: str = "USD"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class CreateProductRequest(APIModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    price: float = Field(..., ge=0)
    currency: str = "USD"
    metadata: Optional[Dict[str, Any]] = None


class UpdateProductRequest(APIModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    currency: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class ProductStats(APIModel):
    total: int = 0
    active: int = 0
    revenue: float = 0.0


# Webhooks


class Webhook(APIModel):
    id: str
    url: str
    events: List[str] = Field(default_factory=list)
    secret: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CreateWebhookRequest(APIModel):
    url: str = Field(..., min_length=1)
    events: List[str] = Field(default_factory=list)
    secret: Optional[str] = None


class UpdateWebhookRequest(APIModel):
    url: Optional[str] = None
    events: Optional[List[str]] = None
    secret: Optional[str] = None


# Analytics and system


class Analytics(APIModel):
    total_licenses: int = 0
    active_licenses: int = 0
    expired_licenses: int = 0
    revoked_licenses: int = 0
    validations_today: int = 0
    validations_this_week: int = 0
    validations_this_month: int = 0
    top_features: List[str] = Field(default_factory=list)
    usage_by_day: List[Dict[str, Any]] = Field(default_factory=list)


class UsageStats(APIModel):
    period: Optional[str] = None
    granularity: Optional[str] = None
    total_requests: int = 0
    data: List[Dict[str, Any]] = Field(default_factory=list)


class HealthResponse(APIModel):
    status: str
    timestamp: Optional[str] = None
    version: Optional[str] = None


class PingResponse(APIModel):
    message: str
    time: Optional[str] = None


class SystemStatus(APIModel):
    status: str
    services: Dict[str, Any] = Field(default_factory=dict)
    version: Optional[str] = None


__all__ = [
    "APIKeyResponse",
    "APIModel",
    "Analytics",
    "Application",
    "ChangePasswordRequest",
    "CreateApplicationRequest",
    "CreateLicenseRequest",
    "CreateProductRequest",
    "CreateUserRequest",
    "CreateWebhookRequest",
    "ErrorResponse",
    "HealthResponse",
    "License",
    "LicenseStats",
    "LicenseValidationResult",
    "LoginRequest",
    "LoginResponse",
    "Page",
    "PingResponse",
    "Product",
    "ProductStats",
    "RegisterUserRequest",
    "ResetPasswordRequest",
    "SystemStatus",
    "TokenRefreshResponse",
    "UpdateApplicationRequest",
    "UpdateLicenseRequest",
    "UpdateProductRequest",
    "UpdateUserRequest",
    "UpdateWebhookRequest",
    "UsageStats",
    "User",
    "UserStats",
    "Webhook",
]
