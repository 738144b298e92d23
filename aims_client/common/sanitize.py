from __future__ import annotations

import re

SECRET_MASK = "***"

# Ключи тел запросов/ответов AIMS, значения которых нельзя выводить.
AIMS_SENSITIVE_KEYS: tuple[str, ...] = (
    "password",
    "current_password",
    "new_password",
    "token",
    "mfa_code",
    "mfa_codes",
    "mfa_uri",
    "authorization",
    "x-aims-auth-token",
    "auth_token",
)

_RESET_TOKEN_PATH = re.compile(r"(/reset_password/)[^/]+")


def maskSecret(value: str | None) -> str | None:
    """
    Назначение:
        Маскирует секрет для безопасного вывода в stdout/logs.

    Выходные данные:
        str | None
            '***', если значение задано, иначе None.
    """
    if value is None:
        return None
    return SECRET_MASK


def truncateText(value: str | None, limit: int = 500) -> str | None:
    """
    Назначение:
        Ограничивает длину текста (body_snippet, сообщения ошибок) в логах.
    """
    if value is None:
        return None
    if len(value) <= limit:
        return value
    suffix = "..." if limit > 3 else ""
    return value[: limit - len(suffix)] + suffix


def maskSecretsInObject(obj: object, sensitive_keys: tuple[str, ...] = AIMS_SENSITIVE_KEYS) -> object:
    """
    Назначение:
        Рекурсивно маскирует значения по чувствительным ключам в dict/list.

    Входные данные:
        obj: object
            Тело запроса/ответа AIMS (dict/list/примитив).
        sensitive_keys: tuple[str, ...]
            Ключи (без учёта регистра), значения которых маскируются целиком,
            включая вложенные структуры (например, mfa_codes).

    Выходные данные:
        object
            Новая структура; исходная не изменяется.
    """
    sensitive = {key.lower() for key in sensitive_keys}
    if isinstance(obj, dict):
        masked: dict[object, object] = {}
        for k, v in obj.items():
            if isinstance(k, str) and k.lower() in sensitive:
                masked[k] = None if v is None else SECRET_MASK
            else:
                masked[k] = maskSecretsInObject(v, sensitive_keys)
        return masked
    if isinstance(obj, (list, tuple)):
        return [maskSecretsInObject(item, sensitive_keys) for item in obj]
    return obj


def maskPathSecrets(path: str) -> str:
    """
    Назначение:
        Скрывает одноразовый токен сброса пароля в пути запроса.

    Пример:
        /reset_password/69EtspCz3c4 -> /reset_password/***
    """
    return _RESET_TOKEN_PATH.sub(lambda m: m.group(1) + SECRET_MASK, path)


__all__ = [
    "AIMS_SENSITIVE_KEYS",
    "SECRET_MASK",
    "maskPathSecrets",
    "maskSecret",
    "maskSecretsInObject",
    "truncateText",
]
