from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """
    Назначение:
        Таксономия кодов ошибок AIMS-запросов для CLI и логов.
    """

    NETWORK_ERROR = "NETWORK_ERROR"
    HTTP_ERROR = "HTTP_ERROR"
    INVALID_JSON = "INVALID_JSON"
    API_ERROR = "API_ERROR"
    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    RATE_LIMITED = "RATE_LIMITED"
    SERVER_ERROR = "SERVER_ERROR"

    @classmethod
    def from_status(cls, status_code: int | None) -> "ErrorCode":
        """
        Назначение:
            Подбор общего кода по HTTP-статусу ответа AIMS.
        """
        if status_code is None:
            return cls.API_ERROR
        if status_code == 400:
            return cls.BAD_REQUEST
        if status_code == 401:
            return cls.UNAUTHORIZED
        if status_code == 403:
            return cls.FORBIDDEN
        if status_code == 404:
            return cls.NOT_FOUND
        if status_code == 409:
            return cls.CONFLICT
        if status_code == 429:
            return cls.RATE_LIMITED
        if 500 <= status_code <= 599:
            return cls.SERVER_ERROR
        return cls.HTTP_ERROR

    @classmethod
    def from_api_code(cls, code: str | None, status_code: int | None) -> "ErrorCode":
        """
        Алгоритм:
            - NETWORK_ERROR/INVALID_JSON маппятся напрямую.
            - HTTP_* классифицируются по статусу.
            - Остальное -> API_ERROR.
        """
        if code == "NETWORK_ERROR":
            return cls.NETWORK_ERROR
        if code == "INVALID_JSON":
            return cls.INVALID_JSON
        if code and code.startswith("HTTP_"):
            return cls.from_status(status_code)
        return cls.API_ERROR
