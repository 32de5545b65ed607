# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Typed form payloads and their validation.

``validate`` never raises on bad input: it returns a :class:`Submission` whose
``field_errors`` map form field names to messages.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, TypeAdapter, ValidationError, ValidationInfo, field_validator

_EMAIL = TypeAdapter(EmailStr)
MAX_TEXT = 255
MAX_BIO = 1000
MIN_PASSWORD = 8

# Never echoed back into a re-rendered form.
SECRET_FIELDS = {"password", "currentPassword", "newPassword", "confirmNewPassword"}


def _required(value: Optional[str], message: str) -> str:
    if value is None or not str(value).strip():
        raise ValueError(message)
    return str(value)


def _check_email(value: str) -> str:
    value = value.strip()
    if len(value) > MAX_TEXT:
        raise ValueError("Email must be less than 255 characters")
    try:
        # EmailStr also accepts "Name <addr>"; only a bare address may pass.
        valid = _EMAIL.validate_python(value).lower() == value.lower()
    except ValidationError:
        valid = False
    if not valid:
        raise ValueError("Please enter a valid email address")
    return value


def check_password_policy(value: str) -> str:
    if len(value) < MIN_PASSWORD:
        raise ValueError("Password must be at least 8 characters")
    if len(value) > MAX_TEXT:
        raise ValueError("Password must be less than 255 characters")
    if not (re.search(r"[A-Za-z]", value) and re.search(r"[0-9]", value)):
        raise ValueError("Password must contain at least one letter and one number")
    return value


class _Form(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SignInForm(_Form):
    email: Optional[str] = Field(default=None, validate_default=True)
    password: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: Optional[str]) -> str:
        return _check_email(_required(value, "Email is required"))

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: Optional[str]) -> str:
        return check_password_policy(_required(value, "Password is required"))


class PasswordChangeForm(_Form):
    current_password: Optional[str] = Field(default=None, alias="currentPassword", validate_default=True)
    new_password: Optional[str] = Field(default=None, alias="newPassword", validate_default=True)
    confirm_new_password: Optional[str] = Field(default=None, alias="confirmNewPassword", validate_default=True)

    @field_validator("current_password")
    @classmethod
    def validate_current(cls, value: Optional[str]) -> str:
        return _required(value, "Current password is required")

    @field_validator("new_password")
    @classmethod
    def validate_new(cls, value: Optional[str]) -> str:
        return check_password_policy(_required(value, "New password is required"))

    @field_validator("confirm_new_password")
    @classmethod
    def validate_confirm(cls, value: Optional[str], info: ValidationInfo) -> str:
        value = _required(value, "Please confirm your new password")
        new = info.data.get("new_password")
        if new is not None and value != new:
            raise ValueError("Passwords don't match")
        return value


class ProfileForm(_Form):
    name: Optional[str] = Field(default=None, validate_default=True)
    email: Optional[str] = Field(default=None, validate_default=True)
    image: Optional[str] = None
    bio: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: Optional[str]) -> str:
        value = _required(value, "Name is required").strip()
        if len(value) > MAX_TEXT:
            raise ValueError("Name must be less than 255 characters")
        return value

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: Optional[str]) -> str:
        return _check_email(_required(value, "Email is required"))

    @field_validator("image")
    @classmethod
    def validate_image(cls, value: Optional[str]) -> Optional[str]:
        value = (value or "").strip()
        return value or None

    @field_validator("bio")
    @classmethod
    def validate_bio(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        if len(value) > MAX_BIO:
            raise ValueError("Bio must be less than 1000 characters")
        return value


F = TypeVar("F", bound=BaseModel)


@dataclass
class Submission(Generic[F]):
    """Outcome of validating one submitted form."""

    payload: Dict[str, Any] = field(default_factory=dict)
    value: Optional[F] = None
    field_errors: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.value is not None and not self.field_errors

    @property
    def status(self) -> str:
        return "success" if self.ok else "error"

    def with_errors(self, field_errors: Mapping[str, List[str]]) -> "Submission[F]":
        merged = {k: list(v) for k, v in self.field_errors.items()}
        for name, messages in field_errors.items():
            merged.setdefault(name, []).extend(messages)
        return Submission(payload=self.payload, value=None, field_errors=merged)

    def reply(self) -> dict:
        """JSON-friendly body: status, field errors and the non-secret inputs."""
        return {
            "status": self.status,
            "fieldErrors": self.field_errors,
            "initialValue": {k: v for k, v in self.payload.items() if k not in SECRET_FIELDS},
        }


def _message(err: dict) -> str:
    ctx = err.get("ctx") or {}
    if err.get("type") == "value_error" and "error" in ctx:
        return str(ctx["error"])
    return str(err.get("msg") or "Invalid value")


def _field_key(form_cls: Type[BaseModel], name: str) -> str:
    """Form key for an error on ``name``; pydantic reports missing aliased fields by attribute name."""
    info = form_cls.model_fields.get(name)
    if info is not None and info.alias:
        return info.alias
    return name


def validate(form_cls: Type[F], data: Mapping[str, Any]) -> Submission[F]:
    payload = {str(k): ("" if v is None else str(v)) for k, v in data.items()}
    try:
        value = form_cls.model_validate(payload)
    except ValidationError as e:
        errors: Dict[str, List[str]] = {}
        for err in e.errors():
            loc = err.get("loc") or ("form",)
            errors.setdefault(_field_key(form_cls, str(loc[0])), []).append(_message(err))
        return Submission(payload=payload, field_errors=errors)
    return Submission(payload=payload, value=value)
