from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable

from aims_client.domain.descriptor import RequestDescriptor


@runtime_checkable
class AlClientProtocol(Protocol):
    """
    Назначение:
        Контракт внешнего HTTP-клиента Alert Logic, которому AimsClient
        делегирует каждый запрос.

    Контракт:
        - fetch/post/set/delete(descriptor) -> разобранный ответ (GET/POST/PUT/DELETE).
        - authenticate(params, user, password, mfa_code) -> ответ аутентификации.
        - Ошибки транспорта/HTTP/аутентификации выбрасываются реализацией;
          вызывающая сторона их не переупаковывает.
        - Базовый URL, заголовки, токены сессии, ретраи - зона реализации.
    """

    async def fetch(self, descriptor: RequestDescriptor) -> Any: ...
    async def post(self, descriptor: RequestDescriptor) -> Any: ...
    async def set(self, descriptor: RequestDescriptor) -> Any: ...
    async def delete(self, descriptor: RequestDescriptor) -> Any: ...

    async def authenticate(
        self,
        params: Mapping[str, Any] | None,
        user: str,
        password: str,
        mfa_code: str | None = None,
    ) -> Any: ...


__all__ = ["AlClientProtocol"]
