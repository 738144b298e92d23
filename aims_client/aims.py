"""
Адаптер публичных эндпоинтов AIMS (Access and Identity Management Service).

Каждый метод соответствует одному REST-эндпоинту /aims/v1/...: собирает
RequestDescriptor и делегирует его коллаборатору (AlClientProtocol).
Транспорт, базовый URL, токены сессии и ретраи - зона коллаборатора.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from aims_client.common.sanitize import maskPathSecrets
from aims_client.domain.descriptor import AccountId, RequestDescriptor
from aims_client.domain.payloads import (
    MfaEnrollment,
    MfaRequirement,
    PasswordChange,
    PasswordReset,
    PasswordResetRequest,
    RoleDefinition,
)
from aims_client.domain.ports.al_client import AlClientProtocol
from aims_client.logging_setup import logEvent

AIMS_SERVICE_NAME = "aims"
MANAGED_RELATIONSHIP = "managed"


class AimsClient:
    """
    Назначение/ответственность:
        Одна корутина на эндпоинт AIMS, скрывающая шаблоны путей и HTTP-глаголы.
    Инварианты/гарантии:
        - Ровно один вызов коллаборатора на операцию.
        - Результат коллаборатора возвращается без изменений.
        - Исключения коллаборатора не перехватываются и не оборачиваются.
        - Изменяемого состояния нет, параллельные вызовы независимы.
    Ограничения:
        Валидация account_id и формы тел - ответственность коллаборатора/сервиса.
    """

    def __init__(
        self,
        client: AlClientProtocol,
        logger: logging.Logger | None = None,
        run_id: str | None = None,
    ):
        self._client = client
        self._logger = logger or logging.getLogger("aims_client.aims")
        self._run_id = run_id

    def _descriptor(
        self,
        path: str,
        account_id: AccountId | None = None,
        params: Mapping[str, Any] | None = None,
        data: Any | None = None,
    ) -> RequestDescriptor:
        return RequestDescriptor(
            service_name=AIMS_SERVICE_NAME,
            path=path,
            account_id=account_id,
            params=params,
            data=data,
        )

    def _log_request(self, verb: str, descriptor: RequestDescriptor) -> None:
        # Тела не логируются: в них пароли и MFA-коды.
        logEvent(
            self._logger,
            logging.DEBUG,
            self._run_id,
            "aims",
            f"{verb} path={maskPathSecrets(descriptor.path)} account_id={descriptor.account_id}",
        )

    async def _fetch(self, descriptor: RequestDescriptor) -> Any:
        self._log_request("fetch", descriptor)
        return await self._client.fetch(descriptor)

    async def _post(self, descriptor: RequestDescriptor) -> Any:
        self._log_request("post", descriptor)
        return await self._client.post(descriptor)

    async def _set(self, descriptor: RequestDescriptor) -> Any:
        self._log_request("set", descriptor)
        return await self._client.set(descriptor)

    async def _delete(self, descriptor: RequestDescriptor) -> Any:
        self._log_request("delete", descriptor)
        return await self._client.delete(descriptor)

    # Accounts

    async def get_account_details(self, account_id: AccountId) -> Any:
        """GET /aims/v1/:account_id/account"""
        return await self._fetch(self._descriptor("/account", account_id=account_id))

    async def get_related_accounts(
        self,
        account_id: AccountId,
        relationship: str,
        query_params: Mapping[str, Any] | None = None,
    ) -> Any:
        """
        GET /aims/v1/:account_id/accounts/:relationship

        relationship: "managed" (аккаунты, которыми управляет account_id)
        или "managing" (аккаунты, управляющие account_id).
        """
        return await self._fetch(
            self._descriptor(f"/accounts/{relationship}", account_id=account_id, params=query_params)
        )

    async def get_related_account_ids(
        self,
        account_id: AccountId,
        relationship: str,
        query_params: Mapping[str, Any] | None = None,
    ) -> Any:
        """GET /aims/v1/:account_id/account_ids/:relationship"""
        return await self._fetch(
            self._descriptor(f"/account_ids/{relationship}", account_id=account_id, params=query_params)
        )

    async def get_managed_accounts(self, account_id: AccountId, query_params: Mapping[str, Any] | None = None) -> Any:
        """GET /aims/v1/:account_id/accounts/managed"""
        return await self.get_related_accounts(account_id, MANAGED_RELATIONSHIP, query_params)

    async def get_managed_account_ids(
        self,
        account_id: AccountId,
        query_params: Mapping[str, Any] | None = None,
    ) -> Any:
        """GET /aims/v1/:account_id/account_ids/managed"""
        return await self.get_related_account_ids(account_id, MANAGED_RELATIONSHIP, query_params)

    async def require_mfa(self, account_id: AccountId, mfa_required: bool) -> Any:
        """
        POST /aims/v1/:account_id/account
        -d '{"mfa_required": true}'
        """
        payload = MfaRequirement(mfa_required=mfa_required).to_payload()
        return await self._post(self._descriptor("/account", account_id=account_id, data=payload))

    # Authentication

    async def authenticate(
        self,
        params: Mapping[str, Any] | None,
        user: str,
        password: str,
        mfa_code: str | None = None,
    ) -> Any:
        """
        POST /aims/v1/authenticate (basic auth username:password).

        Полностью делегируется коллаборатору: он же решает, что делать с токеном сессии.
        """
        logEvent(self._logger, logging.DEBUG, self._run_id, "aims", "authenticate path=/authenticate")
        return await self._client.authenticate(params, user, password, mfa_code)

    async def change_password(self, email: str, password: str, new_password: str) -> Any:
        """POST /aims/v1/change_password"""
        payload = PasswordChange(email=email, current_password=password, new_password=new_password).to_payload()
        return await self._post(self._descriptor("/change_password", data=payload))

    async def token_info(self) -> Any:
        """
        GET /aims/v1/token_info

        Информация о текущем токене: аккаунт, пользователь, роли.
        """
        return await self._fetch(self._descriptor("/token_info"))

    async def initiate_reset(self, email: str, return_to: str) -> Any:
        """POST /aims/v1/reset_password"""
        payload = PasswordResetRequest(email=email, return_to=return_to).to_payload()
        return await self._post(self._descriptor("/reset_password", data=payload))

    async def reset_with_token(self, token: str, password: str) -> Any:
        """PUT /aims/v1/reset_password/:token"""
        payload = PasswordReset(password=password).to_payload()
        return await self._set(self._descriptor(f"/reset_password/{token}", data=payload))

    # Roles

    async def create_role(self, account_id: AccountId, name: str, permissions: Mapping[str, str]) -> Any:
        """
        POST /aims/v1/:account_id/roles
        -d '{"name": "Super Mega Power User", "permissions": {"*:own:*:*": "allowed"}}'
        """
        payload = RoleDefinition(name=name, permissions=permissions).to_payload()
        return await self._post(self._descriptor("/roles", account_id=account_id, data=payload))

    async def delete_role(self, account_id: AccountId, role_id: str) -> Any:
        """DELETE /aims/v1/:account_id/roles/:role_id"""
        return await self._delete(self._descriptor(f"/roles/{role_id}", account_id=account_id))

    async def get_global_role(self, role_id: str) -> Any:
        """GET /aims/v1/roles/:role_id (роль, общая для всех аккаунтов)"""
        return await self._fetch(self._descriptor(f"/roles/{role_id}"))

    async def get_account_role(self, account_id: AccountId, role_id: str) -> Any:
        """GET /aims/v1/:account_id/roles/:role_id"""
        return await self._fetch(self._descriptor(f"/roles/{role_id}", account_id=account_id))

    async def get_global_roles(self) -> Any:
        """GET /aims/v1/roles"""
        return await self._fetch(self._descriptor("/roles"))

    async def get_account_roles(self, account_id: AccountId) -> Any:
        """GET /aims/v1/:account_id/roles (включая глобальные роли)"""
        return await self._fetch(self._descriptor("/roles", account_id=account_id))

    async def update_role(
        self,
        account_id: AccountId,
        role_id: str,
        name: str,
        permissions: Mapping[str, str],
    ) -> Any:
        """POST /aims/v1/:account_id/roles/:role_id"""
        payload = RoleDefinition(name=name, permissions=permissions).to_payload()
        return await self._post(self._descriptor(f"/roles/{role_id}", account_id=account_id, data=payload))

    async def update_role_name(self, account_id: AccountId, role_id: str, name: str) -> Any:
        """POST /aims/v1/:account_id/roles/:role_id"""
        payload = RoleDefinition(name=name).to_payload()
        return await self._post(self._descriptor(f"/roles/{role_id}", account_id=account_id, data=payload))

    async def update_role_permissions(
        self,
        account_id: AccountId,
        role_id: str,
        permissions: Mapping[str, str],
    ) -> Any:
        """POST /aims/v1/:account_id/roles/:role_id"""
        payload = RoleDefinition(permissions=permissions).to_payload()
        return await self._post(self._descriptor(f"/roles/{role_id}", account_id=account_id, data=payload))

    # MFA

    async def enroll_mfa(self, uri: str, codes: Sequence[str]) -> Any:
        """
        POST /aims/v1/user/mfa/enroll

        Требует токен сессии пользователя (X-Aims-Session-Token), его выставляет коллаборатор.
        """
        payload = MfaEnrollment(mfa_uri=uri, mfa_codes=codes).to_payload()
        return await self._post(self._descriptor("/user/mfa/enroll", data=payload))

    async def delete_mfa(self, email: str) -> Any:
        """DELETE /aims/v1/user/mfa/:email"""
        return await self._delete(self._descriptor(f"/user/mfa/{email}"))


__all__ = ["AIMS_SERVICE_NAME", "AimsClient", "MANAGED_RELATIONSHIP"]
