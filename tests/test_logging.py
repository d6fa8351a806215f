import json
import logging

import pytest

from terramail import main
from terramail.errors import Forbidden
from terramail.logger import JsonFormatter
from terramail.services import accounts
from tests.utils.auth import PASSWORD, make_account


def test_json_lines_carry_extra_context():
    record = logging.LogRecord(
        "terramail.test", logging.WARNING, __file__, 1, "audit: %s", ("x",), None
    )
    record.ip = "192.0.2.1"
    record.outcome = "throttled"

    line = json.loads(JsonFormatter().format(record))

    assert line["message"] == "audit: x"
    assert line["level"] == "warning"
    assert line["logger"] == "terramail.test"
    assert line["ip"] == "192.0.2.1"
    assert line["outcome"] == "throttled"
    assert "args" not in line and "msg" not in line


def test_banned_login_audit_line(store, caplog):
    user = make_account(store, "audit@example.com")
    accounts.set_ban(store, user.id, True)

    with caplog.at_level("WARNING"):
        with pytest.raises(Forbidden):
            accounts.authenticate(
                store, email="audit@example.com", password=PASSWORD, ip_address="192.0.2.9"
            )

    record = next(r for r in caplog.records if getattr(r, "outcome", None) == "banned")
    line = json.loads(JsonFormatter().format(record))
    assert line["event"] == "login"
    assert line["ip"] == "192.0.2.9"
    assert line["user_id"] == user.id
    assert line["message"].startswith("audit:")


def test_default_secrets_are_reported(caplog):
    cfg = main.settings.model_copy(
        update={
            "jwt_secret": main.Settings.model_fields["jwt_secret"].default,
            "admin_password": main.Settings.model_fields["admin_password"].default,
            "seed_defaults": True,
        }
    )
    with caplog.at_level("WARNING"):
        flagged = main.warn_on_default_secrets(cfg)

    assert flagged == ["jwt_secret", "admin_password"]
    assert any("JWT_SECRET" in r.getMessage() for r in caplog.records)
    assert any("ADMIN_PASSWORD" in r.getMessage() for r in caplog.records)


def test_configured_secrets_are_quiet(caplog):
    cfg = main.settings.model_copy(
        update={"jwt_secret": "s3cr3t-from-env", "admin_password": "chosen", "seed_defaults": True}
    )
    with caplog.at_level("WARNING"):
        assert main.warn_on_default_secrets(cfg) == []
    assert not any("built-in default" in r.getMessage() for r in caplog.records)
