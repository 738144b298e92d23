from __future__ import annotations

from aims_client.common.sanitize import maskPathSecrets, maskSecretsInObject, truncateText


def test_mask_secrets_in_password_change_body():
    body = {"email": "admin@company.com", "current_password": "hunter2", "new_password": "Fraudulent$Foes"}

    masked = maskSecretsInObject(body)

    assert masked == {"email": "admin@company.com", "current_password": "***", "new_password": "***"}
    assert body["current_password"] == "hunter2"


def test_mask_secrets_nested_token_and_codes():
    data = {
        "authentication": {"token": "abc", "user": {"email": "a@b.c"}},
        "items": [{"mfa_codes": ["1", "2"], "mfa_uri": "otpauth://x"}],
    }

    masked = maskSecretsInObject(data)

    assert masked["authentication"]["token"] == "***"
    assert masked["authentication"]["user"] == {"email": "a@b.c"}
    assert masked["items"][0] == {"mfa_codes": "***", "mfa_uri": "***"}


def test_mask_path_secrets_hides_reset_token():
    assert maskPathSecrets("/reset_password/69EtspCz3c4") == "/reset_password/***"
    assert maskPathSecrets("/aims/v1/reset_password/69EtspCz3c4") == "/aims/v1/reset_password/***"
    assert maskPathSecrets("/reset_password") == "/reset_password"
    assert maskPathSecrets("/roles/R1") == "/roles/R1"
    assert maskPathSecrets("/aims/v1/reset_password/ab?cd") == "/aims/v1/reset_password/***"


def test_truncate_text():
    assert truncateText(None) is None
    assert truncateText("abc", limit=10) == "abc"
    assert truncateText("abcdefghij", limit=6) == "abc..."
