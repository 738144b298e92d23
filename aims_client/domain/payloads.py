from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence


@dataclass(frozen=True)
class MfaRequirement:
    """Тело POST /aims/v1/:account_id/account."""

    mfa_required: bool

    def to_payload(self) -> dict[str, Any]:
        return {"mfa_required": self.mfa_required}


@dataclass(frozen=True)
class PasswordChange:
    """Тело POST /aims/v1/change_password."""

    email: str
    current_password: str
    new_password: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "email": self.email,
            "current_password": self.current_password,
            "new_password": self.new_password,
        }


@dataclass(frozen=True)
class PasswordResetRequest:
    """Тело POST /aims/v1/reset_password: куда вернуть пользователя после сброса."""

    email: str
    return_to: str

    def to_payload(self) -> dict[str, Any]:
        return {"email": self.email, "return_to": self.return_to}


@dataclass(frozen=True)
class PasswordReset:
    password: str

    def to_payload(self) -> dict[str, Any]:
        return {"password": self.password}


@dataclass(frozen=True)
class RoleDefinition:
    """
    Назначение:
        Тело создания/изменения роли.
    Контракт:
        - Незаданные поля (None) не попадают в payload, что позволяет
          менять только имя или только права.
        - permissions: {"<service>:<owner>:<action>:<object>": "allowed"|"denied"}.
    """

    name: str | None = None
    permissions: Mapping[str, str] | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.name is not None:
            payload["name"] = self.name
        if self.permissions is not None:
            payload["permissions"] = dict(self.permissions)
        return payload


@dataclass(frozen=True)
class MfaEnrollment:
    """
    Назначение:
        Тело POST /aims/v1/user/mfa/enroll.
    Контракт:
        - mfa_uri: otpauth:// URI устройства.
        - mfa_codes: последовательные коды, подтверждающие устройство.
    """

    mfa_uri: str
    mfa_codes: Sequence[str]

    def to_payload(self) -> dict[str, Any]:
        return {"mfa_uri": self.mfa_uri, "mfa_codes": list(self.mfa_codes)}


__all__ = [
    "MfaEnrollment",
    "MfaRequirement",
    "PasswordChange",
    "PasswordReset",
    "PasswordResetRequest",
    "RoleDefinition",
]
