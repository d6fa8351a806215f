import pytest
from fastapi.testclient import TestClient

from terramail import main


@pytest.mark.smoke
def test_seeded_json_backend(tmp_path, monkeypatch):
    """Fresh flat-file deployment: seed, log in as admin, read the catalogue."""
    monkeypatch.setattr(main.settings, "store_backend", "json")
    monkeypatch.setattr(main.settings, "json_store_path", str(tmp_path / "db.json"))
    monkeypatch.setattr(main.settings, "seed_defaults", True)

    with TestClient(main.app) as client:
        login = client.post(
            "/api/auth/login",
            json={"email": main.settings.admin_email, "password": main.settings.admin_password},
        )
        assert login.status_code == 200
        assert login.json()["user"]["role"] == "admin"
        assert login.json()["user"]["subscription_days"] == 9999

        catalogue = client.get("/api/plans").json()
        assert [p["days"] for p in catalogue] == [30, 90, 180, 365]

        health = client.get("/api/health")
        assert health.status_code == 200

    assert (tmp_path / "db.json").exists()
