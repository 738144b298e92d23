from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

AccountId = str | int


@dataclass(frozen=True)
class RequestDescriptor:
    """
    Назначение/ответственность:
        Описание одного исходящего запроса к сервису Alert Logic
        без привязки к HTTP-клиенту.
    Инварианты/гарантии:
        - service_name непустой.
        - path начинается с '/', идентификаторы подставлены как есть.
        - account_id=None означает запрос вне области аккаунта.
    Взаимодействия:
        Создаётся AimsClient и передаётся в AlClientProtocol.fetch/post/set/delete.
        Живёт в пределах одного вызова.
    """

    service_name: str
    path: str
    account_id: AccountId | None = None
    params: Mapping[str, Any] | None = None
    data: Any | None = None

    def __post_init__(self) -> None:
        if not self.service_name:
            raise ValueError("service_name must not be empty")
        if not self.path.startswith("/"):
            raise ValueError(f"path must start with '/': {self.path!r}")

    def to_dict(self) -> dict[str, Any]:
        """
        Контракт:
            Возвращает dict только с заданными полями (None опускается),
            account_id=0 сохраняется.
        """
        result: dict[str, Any] = {"service_name": self.service_name}
        if self.account_id is not None:
            result["account_id"] = self.account_id
        result["path"] = self.path
        if self.params is not None:
            result["params"] = dict(self.params)
        if self.data is not None:
            result["data"] = self.data
        return result


__all__ = ["AccountId", "RequestDescriptor"]
