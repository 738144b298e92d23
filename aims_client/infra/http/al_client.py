from __future__ import annotations

import logging
import time
from typing import Any, Mapping

import httpx

from aims_client.common.sanitize import maskPathSecrets, truncateText
from aims_client.domain.descriptor import RequestDescriptor
from aims_client.errors import AppError
from aims_client.logging_setup import logEvent


class ApiError(AppError):
    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body_snippet: str | None = None,
        retryable: bool = False,
        details: dict | None = None,
        code: str | None = None,
    ):
        """
        Назначение:
            Исключение HTTP/API уровня AlApiClient.
        Контракт:
            - code: HTTP_<status>, NETWORK_ERROR, INVALID_JSON.
            - retryable только информирует вызывающего: сам клиент не повторяет запросы.
        """
        super().__init__(
            category="api",
            code=code or (f"HTTP_{status_code}" if status_code else "API_ERROR"),
            message=message,
            retryable=retryable,
            details=details or {},
        )
        self.status_code = status_code
        self.body_snippet = body_snippet


class AlApiClient:
    """
    Назначение/ответственность:
        Минимальная реализация AlClientProtocol поверх httpx.AsyncClient:
        строит URL по RequestDescriptor, отправляет запрос, разбирает JSON.
    Ограничения:
        - Без ретраев, кэширования и хранения токенов: токен передаётся
          снаружи (auth_token) и выставляется заголовком X-AIMS-Auth-Token.
        - Одна попытка на вызов, ошибки -> ApiError.
    """

    AUTH_TOKEN_HEADER = "X-AIMS-Auth-Token"

    def __init__(
        self,
        baseUrl: str,
        authToken: str | None = None,
        apiVersion: str = "v1",
        timeoutSeconds: float = 20.0,
        tlsSkipVerify: bool = False,
        caFile: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        logger: logging.Logger | None = None,
        runId: str | None = None,
    ):
        verify: bool | str = True
        if tlsSkipVerify:
            verify = False
        elif caFile:
            verify = caFile

        self.baseUrl = baseUrl.rstrip("/")
        self.apiVersion = apiVersion
        self.logger = logger or logging.getLogger("aims_client.http")
        self.runId = runId
        self._authToken = authToken

        self.client = httpx.AsyncClient(
            base_url=self.baseUrl,
            timeout=timeoutSeconds,
            verify=verify,
            transport=transport,
        )

    async def __aenter__(self) -> "AlApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    def _headers(self) -> dict[str, str]:
        headers = {"accept": "application/json"}
        if self._authToken:
            headers[self.AUTH_TOKEN_HEADER] = self._authToken
        return headers

    def buildPath(self, descriptor: RequestDescriptor) -> str:
        """
        Назначение:
            /{service_name}/{apiVersion}[/{account_id}]{path}
        Пример:
            aims, 12345678, /roles -> /aims/v1/12345678/roles
        """
        prefix = f"/{descriptor.service_name}/{self.apiVersion}"
        if descriptor.account_id is not None:
            prefix = f"{prefix}/{descriptor.account_id}"
        return prefix + descriptor.path

    def _is_retryable(self, status_code: int) -> bool:
        return status_code == 429 or 500 <= status_code <= 599

    async def _send(
        self,
        method: str,
        path: str,
        params: Mapping[str, Any] | None = None,
        jsonBody: Any | None = None,
        auth: httpx.Auth | tuple[str, str] | None = None,
    ) -> Any:
        """
        Алгоритм:
            - Один запрос через httpx.AsyncClient.
            - path экранируется целиком через httpx.URL(path=...): "?" и "#" в
              идентификаторах (email, токен, role_id) остаются частью пути.
            - Сетевые ошибки/таймауты -> ApiError(NETWORK_ERROR).
            - Не 2xx -> ApiError(HTTP_<status>) с body_snippet.
            - 2xx: пустое тело -> None, иначе JSON или ApiError(INVALID_JSON).
        """
        safePath = maskPathSecrets(path)
        start = time.monotonic()
        try:
            resp = await self.client.request(
                method,
                httpx.URL(path=path),
                params=dict(params) if params else None,
                json=jsonBody,
                headers=self._headers(),
                auth=auth,
            )
        except (httpx.TimeoutException, httpx.TransportError) as exc:
            logEvent(self.logger, logging.ERROR, self.runId, "http", f"{method} {safePath} network error: {exc}")
            raise ApiError("Network error", status_code=None, retryable=True, code="NETWORK_ERROR") from exc

        latencyMs = int((time.monotonic() - start) * 1000)
        logEvent(
            self.logger,
            logging.DEBUG,
            self.runId,
            "http",
            f"{method} {safePath} status={resp.status_code} latency_ms={latencyMs}",
        )

        if not resp.is_success:
            body_snippet = truncateText(resp.text, 200) if resp.text else None
            raise ApiError(
                f"HTTP {resp.status_code}",
                status_code=resp.status_code,
                body_snippet=body_snippet,
                retryable=self._is_retryable(resp.status_code),
                details={"body_snippet": body_snippet, "method": method, "path": safePath},
            )

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise ApiError(
                "Invalid JSON response",
                status_code=resp.status_code,
                body_snippet=truncateText(resp.text, 200),
                code="INVALID_JSON",
            ) from exc

    async def fetch(self, descriptor: RequestDescriptor) -> Any:
        return await self._send("GET", self.buildPath(descriptor), params=descriptor.params)

    async def post(self, descriptor: RequestDescriptor) -> Any:
        return await self._send("POST", self.buildPath(descriptor), params=descriptor.params, jsonBody=descriptor.data)

    async def set(self, descriptor: RequestDescriptor) -> Any:
        return await self._send("PUT", self.buildPath(descriptor), params=descriptor.params, jsonBody=descriptor.data)

    async def delete(self, descriptor: RequestDescriptor) -> Any:
        return await self._send("DELETE", self.buildPath(descriptor), params=descriptor.params)

    async def authenticate(
        self,
        params: Mapping[str, Any] | None,
        user: str,
        password: str,
        mfa_code: str | None = None,
    ) -> Any:
        """
        Назначение:
            POST /aims/{apiVersion}/authenticate с basic auth.
        Контракт:
            - mfa_code (если задан) уходит телом {"mfa_code": ...}.
            - params передаются query-параметрами.
            - Ответ (с authentication.token) возвращается как есть, токен не сохраняется.
        """
        body = {"mfa_code": mfa_code} if mfa_code else None
        return await self._send(
            "POST",
            f"/aims/{self.apiVersion}/authenticate",
            params=params,
            jsonBody=body,
            auth=(user, password),
        )


__all__ = ["AlApiClient", "ApiError"]
