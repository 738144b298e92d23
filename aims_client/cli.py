from __future__ import annotations

import asyncio
import json
import logging
import uuid
from pathlib import Path
from typing import Any, Awaitable, Callable

import typer

from aims_client.aims import AimsClient
from aims_client.common.sanitize import maskSecret, maskSecretsInObject
from aims_client.config import Settings, load_settings
from aims_client.domain.error_codes import ErrorCode
from aims_client.errors import ConfigError
from aims_client.infra.http.al_client import AlApiClient, ApiError
from aims_client.logging_setup import closeCommandLogger, createCommandLogger, logEvent, mapLogLevel

app = typer.Typer(no_args_is_help=True, add_completion=False, help="Alert Logic AIMS API client")
rolesApp = typer.Typer(no_args_is_help=True, help="Roles: list/get/create/update/delete")
mfaApp = typer.Typer(no_args_is_help=True, help="MFA devices")
resetApp = typer.Typer(no_args_is_help=True, help="Password reset")

Operation = Callable[[AimsClient], Awaitable[Any]]


def parseKeyValues(values: list[str] | None, optionName: str) -> dict[str, str] | None:
    """
    Назначение:
        Разбирает повторяемые опции вида key=value (--param, --permission) в dict.

    Поведение:
        - None/пустой список -> None (опция не задана).
        - Элемент без '=' -> ERROR и exit code 2.
    """
    if not values:
        return None
    result: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            typer.echo(f"ERROR: {optionName} expects key=value, got: {item}", err=True)
            raise typer.Exit(code=2)
        result[key] = value
    return result


def printResult(result: Any, maskSecrets: bool = True) -> None:
    if result is None:
        return
    data = maskSecretsInObject(result) if maskSecrets else result
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def buildAlClient(settings: Settings, logger: logging.Logger, runId: str) -> AlApiClient:
    return AlApiClient(
        baseUrl=settings.base_url or "",
        authToken=settings.auth_token,
        apiVersion=settings.api_version,
        timeoutSeconds=settings.timeout_seconds,
        tlsSkipVerify=settings.tls_skip_verify,
        caFile=settings.ca_file,
        logger=logger,
        runId=runId,
    )


async def executeOperation(settings: Settings, logger: logging.Logger, runId: str, operation: Operation) -> Any:
    async with buildAlClient(settings, logger, runId) as alClient:
        aims = AimsClient(alClient, logger=logger, run_id=runId)
        return await operation(aims)


def runApiCommand(ctx: typer.Context, commandName: str, operation: Operation, maskOutput: bool = True) -> None:
    """
    Назначение:
        Унифицированная обвязка выполнения команд AIMS:
        - создаёт логгер + файл лога
        - проверяет наличие base_url
        - выполняет операцию AimsClient в asyncio.run
        - печатает результат JSON в stdout (секреты замаскированы)

    Поведение:
        - Нет base_url -> exit code 2.
        - ApiError -> запись в лог, ERROR в stderr, exit code 2.
    """
    runId = ctx.obj["runId"]
    settings: Settings = ctx.obj["settings"]
    sources = ctx.obj["sources"]

    logger, logFilePath = createCommandLogger(
        commandName=commandName,
        logDir=settings.log_dir,
        runId=runId,
        logLevel=settings.log_level,
    )
    exitCode = 0
    try:
        logEvent(
            logger,
            logging.INFO,
            runId,
            "core",
            f"Command started command={commandName} base_url={settings.base_url} "
            f"api_version={settings.api_version} auth_token={maskSecret(settings.auth_token)} sources={sources}",
        )
        if not settings.base_url:
            logEvent(logger, logging.ERROR, runId, "config", "Missing API settings: base_url")
            typer.echo("ERROR: missing API settings: base_url", err=True)
            exitCode = 2
            return

        try:
            result = asyncio.run(executeOperation(settings, logger, runId, operation))
        except ApiError as exc:
            errorCode = ErrorCode.from_api_code(exc.code, exc.status_code)
            logEvent(
                logger,
                logging.ERROR,
                runId,
                "api",
                f"{commandName} failed: status={exc.status_code} error={maskSecretsInObject(exc.to_dict())}",
            )
            typer.echo(f"ERROR: {commandName} failed: {errorCode.value} {exc.message} (see {logFilePath})", err=True)
            exitCode = 2
            return

        printResult(result, maskSecrets=maskOutput)
    finally:
        logEvent(logger, logging.INFO, runId, "core", f"Command finished exit_code={exitCode}")
        closeCommandLogger(logger)
        if exitCode:
            raise typer.Exit(code=exitCode)


@app.callback()
def main(
    ctx: typer.Context,
    config: str | None = typer.Option(None, "--config", help="Path to config.yml"),
    runId: str | None = typer.Option(None, "--run-id", help="Run identifier (UUID). If omitted, generated."),
    logLevel: str | None = typer.Option(None, "--log-level", help="Log level: ERROR|WARN|INFO|DEBUG"),
    logDir: str | None = typer.Option(None, "--log-dir", help="Directory for logs."),
    baseUrl: str | None = typer.Option(None, "--base-url", help="API base URL, e.g. https://api.cloudinsight.alertlogic.com"),
    apiVersion: str | None = typer.Option(None, "--api-version", help="AIMS API version"),
    authToken: str | None = typer.Option(None, "--auth-token", help="X-AIMS-Auth-Token (avoid; use env/file)"),
    authTokenFile: str | None = typer.Option(None, "--auth-token-file", help="Read auth token from file"),
    timeoutSeconds: float | None = typer.Option(None, "--timeout-seconds", help="API timeout in seconds"),
    tlsSkipVerify: bool | None = typer.Option(None, "--tls-skip-verify", help="Disable TLS verification"),
    caFile: str | None = typer.Option(None, "--ca-file", help="CA file path"),
):
    """
    Назначение:
        Глобальная инициализация CLI:
        - генерирует/принимает run_id
        - загружает настройки (CLI > ENV > config > defaults)
        - сохраняет всё в ctx.obj для подкоманд
    """
    if authTokenFile and not authToken:
        p = Path(authTokenFile)
        if not p.is_file():
            typer.echo(f"ERROR: auth-token-file not found: {authTokenFile}", err=True)
            raise typer.Exit(code=2)
        authToken = p.read_text(encoding="utf-8").strip()

    if not runId:
        runId = str(uuid.uuid4())

    cliOverrides = {
        "base_url": baseUrl,
        "api_version": apiVersion,
        "auth_token": authToken,
        "timeout_seconds": timeoutSeconds,
        "tls_skip_verify": tlsSkipVerify,
        "ca_file": caFile,
        "log_dir": logDir,
        "log_level": logLevel,
    }
    try:
        loaded = load_settings(config_path=config, cli_overrides=cliOverrides)
    except ConfigError as exc:
        typer.echo(f"ERROR: {exc.message}", err=True)
        raise typer.Exit(code=2)
    try:
        mapLogLevel(loaded.settings.log_level)
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=2)

    ctx.obj = {
        "runId": runId,
        "settings": loaded.settings,
        "sources": loaded.sources_used,
    }


# Accounts


@app.command("token-info")
def tokenInfo(ctx: typer.Context):
    """Show account, user and roles of the current auth token."""
    runApiCommand(ctx, "token-info", lambda aims: aims.token_info())


@app.command("account")
def accountDetails(ctx: typer.Context, accountId: str = typer.Argument(..., help="Account ID")):
    runApiCommand(ctx, "account", lambda aims: aims.get_account_details(accountId))


@app.command("managed-accounts")
def managedAccounts(
    ctx: typer.Context,
    accountId: str = typer.Argument(..., help="Account ID"),
    param: list[str] | None = typer.Option(None, "--param", help="Query parameter key=value (repeatable)"),
):
    params = parseKeyValues(param, "--param")
    runApiCommand(ctx, "managed-accounts", lambda aims: aims.get_managed_accounts(accountId, params))


@app.command("managed-account-ids")
def managedAccountIds(
    ctx: typer.Context,
    accountId: str = typer.Argument(..., help="Account ID"),
    param: list[str] | None = typer.Option(None, "--param", help="Query parameter key=value (repeatable)"),
):
    params = parseKeyValues(param, "--param")
    runApiCommand(ctx, "managed-account-ids", lambda aims: aims.get_managed_account_ids(accountId, params))


@app.command("related-accounts")
def relatedAccounts(
    ctx: typer.Context,
    accountId: str = typer.Argument(..., help="Account ID"),
    relationship: str = typer.Argument(..., help="managed|managing"),
    idsOnly: bool = typer.Option(False, "--ids", help="Return account IDs only"),
    param: list[str] | None = typer.Option(None, "--param", help="Query parameter key=value (repeatable)"),
):
    params = parseKeyValues(param, "--param")
    if idsOnly:
        runApiCommand(ctx, "related-account-ids", lambda aims: aims.get_related_account_ids(accountId, relationship, params))
        return
    runApiCommand(ctx, "related-accounts", lambda aims: aims.get_related_accounts(accountId, relationship, params))


@app.command("require-mfa")
def requireMfa(
    ctx: typer.Context,
    accountId: str = typer.Argument(..., help="Account ID"),
    required: bool = typer.Option(True, "--required/--not-required", help="Require MFA for account users"),
):
    runApiCommand(ctx, "require-mfa", lambda aims: aims.require_mfa(accountId, required))


# Authentication


@app.command("authenticate")
def authenticate(
    ctx: typer.Context,
    username: str = typer.Option(..., "--username", help="User login (email)"),
    password: str = typer.Option(..., "--password", prompt=True, hide_input=True, help="User password"),
    mfaCode: str | None = typer.Option(None, "--mfa-code", help="One-time MFA code"),
):
    # Токен в ответе и есть результат команды, поэтому вывод не маскируется.
    runApiCommand(ctx, "authenticate", lambda aims: aims.authenticate(None, username, password, mfaCode), maskOutput=False)


@app.command("change-password")
def changePassword(
    ctx: typer.Context,
    email: str = typer.Option(..., "--email", help="User email"),
    password: str = typer.Option(..., "--password", prompt=True, hide_input=True, help="Current password"),
    newPassword: str = typer.Option(
        ..., "--new-password", prompt=True, hide_input=True, confirmation_prompt=True, help="New password"
    ),
):
    runApiCommand(ctx, "change-password", lambda aims: aims.change_password(email, password, newPassword))


@resetApp.command("initiate")
def resetInitiate(
    ctx: typer.Context,
    email: str = typer.Option(..., "--email", help="User email"),
    returnTo: str = typer.Option(..., "--return-to", help="URL to return the user to after reset"),
):
    runApiCommand(ctx, "reset-password-initiate", lambda aims: aims.initiate_reset(email, returnTo))


@resetApp.command("complete")
def resetComplete(
    ctx: typer.Context,
    token: str = typer.Argument(..., help="Reset token from the email"),
    password: str = typer.Option(
        ..., "--password", prompt=True, hide_input=True, confirmation_prompt=True, help="New password"
    ),
):
    runApiCommand(ctx, "reset-password-complete", lambda aims: aims.reset_with_token(token, password))


# Roles


@rolesApp.command("list")
def rolesList(
    ctx: typer.Context,
    accountId: str | None = typer.Option(None, "--account-id", help="Account ID; global roles if omitted"),
):
    if accountId is None:
        runApiCommand(ctx, "roles-list", lambda aims: aims.get_global_roles())
        return
    runApiCommand(ctx, "roles-list", lambda aims: aims.get_account_roles(accountId))


@rolesApp.command("get")
def rolesGet(
    ctx: typer.Context,
    roleId: str = typer.Argument(..., help="Role ID"),
    accountId: str | None = typer.Option(None, "--account-id", help="Account ID; global role if omitted"),
):
    if accountId is None:
        runApiCommand(ctx, "roles-get", lambda aims: aims.get_global_role(roleId))
        return
    runApiCommand(ctx, "roles-get", lambda aims: aims.get_account_role(accountId, roleId))


@rolesApp.command("create")
def rolesCreate(
    ctx: typer.Context,
    accountId: str = typer.Argument(..., help="Account ID"),
    name: str = typer.Option(..., "--name", help="Role name"),
    permission: list[str] | None = typer.Option(None, "--permission", help="Permission key=allowed|denied (repeatable)"),
):
    permissions = parseKeyValues(permission, "--permission") or {}
    runApiCommand(ctx, "roles-create", lambda aims: aims.create_role(accountId, name, permissions))


@rolesApp.command("update")
def rolesUpdate(
    ctx: typer.Context,
    accountId: str = typer.Argument(..., help="Account ID"),
    roleId: str = typer.Argument(..., help="Role ID"),
    name: str | None = typer.Option(None, "--name", help="New role name"),
    permission: list[str] | None = typer.Option(None, "--permission", help="Permission key=allowed|denied (repeatable)"),
):
    permissions = parseKeyValues(permission, "--permission")
    if name is not None and permissions is not None:
        runApiCommand(ctx, "roles-update", lambda aims: aims.update_role(accountId, roleId, name, permissions))
    elif name is not None:
        runApiCommand(ctx, "roles-update", lambda aims: aims.update_role_name(accountId, roleId, name))
    elif permissions is not None:
        runApiCommand(ctx, "roles-update", lambda aims: aims.update_role_permissions(accountId, roleId, permissions))
    else:
        typer.echo("ERROR: nothing to update: pass --name and/or --permission", err=True)
        raise typer.Exit(code=2)


@rolesApp.command("delete")
def rolesDelete(
    ctx: typer.Context,
    accountId: str = typer.Argument(..., help="Account ID"),
    roleId: str = typer.Argument(..., help="Role ID"),
):
    runApiCommand(ctx, "roles-delete", lambda aims: aims.delete_role(accountId, roleId))


# MFA


@mfaApp.command("enroll")
def mfaEnroll(
    ctx: typer.Context,
    uri: str = typer.Option(..., "--uri", help="otpauth:// URI of the device"),
    code: list[str] = typer.Option(..., "--code", help="Consecutive MFA code (repeatable)"),
):
    runApiCommand(ctx, "mfa-enroll", lambda aims: aims.enroll_mfa(uri, code))


@mfaApp.command("delete")
def mfaDelete(ctx: typer.Context, email: str = typer.Argument(..., help="User email")):
    runApiCommand(ctx, "mfa-delete", lambda aims: aims.delete_mfa(email))


app.add_typer(rolesApp, name="roles")
app.add_typer(mfaApp, name="mfa")
app.add_typer(resetApp, name="reset-password")
