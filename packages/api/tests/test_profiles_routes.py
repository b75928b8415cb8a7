# This project was developed with assistance from AI tools.
"""HTTP tests for the export profile, platform and health routes.

Drive the real app over httpx with a SQLite-backed session and persona users.
"""

from unittest.mock import AsyncMock, patch

import pytest
from db import AuditEvent, DatabaseService, get_db_service
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from src.core.config import settings

from .personas import admin, loan_officer, other_org_admin, processor

BASE = "/api/export-profiles"


async def _create(client, **body):
    payload = {"profile_name": "Default Export", **body}
    resp = await client.post(f"{BASE}/", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


# ---------------------------------------------------------------------------
# RBAC
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_loan_officer_can_read_but_not_write(client_factory):
    client = await client_factory(loan_officer())

    resp = await client.get(f"{BASE}/")
    assert resp.status_code == 200

    resp = await client.post(f"{BASE}/", json={"profile_name": "Nope"})
    assert resp.status_code == 403
    body = resp.json()
    assert body["title"] == "Forbidden"
    assert body["detail"] == "Insufficient permissions"


@pytest.mark.asyncio
async def test_processor_can_create(client_factory):
    client = await client_factory(processor())
    created = await _create(client, platform="Arive")
    assert created["platform"] == "Arive"
    assert created["created_by"] == processor().user_id


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_create_mismo_profile(client_factory):
    client = await client_factory(admin())
    created = await _create(client, platform="MISMO_34")

    assert created["validation_rules"]["require_all_borrowers"] is True
    assert created["validation_rules"]["allow_partial_data"] is True
    assert created["extension_namespace"] == "LG"
    assert created["core_field_mapping"] == {}
    assert created["org_id"] == admin().org_id


@pytest.mark.asyncio
async def test_create_rejects_unknown_platform(client_factory):
    client = await client_factory(admin())
    resp = await client.post(f"{BASE}/", json={"profile_name": "X", "platform": "Blend"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_create_rejects_unknown_core_field(client_factory):
    client = await client_factory(admin())
    resp = await client.post(
        f"{BASE}/",
        json={"profile_name": "X", "overrides": {"core_fields": {"LoanNumber": "deal.id"}}},
    )
    assert resp.status_code == 422
    body = resp.json()
    assert body["code"] == "ValidationError"
    assert "LoanNumber" in body["detail"]


@pytest.mark.asyncio
async def test_create_rejects_overlong_name(client_factory):
    client = await client_factory(admin())
    resp = await client.post(f"{BASE}/", json={"profile_name": "x" * 256})
    assert resp.status_code == 422

    created = await _create(client)
    resp = await client.patch(f"{BASE}/{created['id']}", json={"profile_name": "x" * 256})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_get_update_and_list(client_factory):
    client = await client_factory(admin())
    created = await _create(client, is_default=True)
    await _create(client, profile_name="Secondary", is_active=False)

    resp = await client.patch(
        f"{BASE}/{created['id']}",
        json={"profile_name": "Renamed", "validation_rules": {"require_signatures": True}},
    )
    assert resp.status_code == 200
    updated = resp.json()
    assert updated["profile_name"] == "Renamed"
    assert updated["validation_rules"]["require_signatures"] is True
    assert updated["created_at"] == created["created_at"]

    resp = await client.get(f"{BASE}/{created['id']}")
    assert resp.json()["profile_name"] == "Renamed"

    listing = (await client.get(f"{BASE}/")).json()
    assert listing["total"] == 2
    assert listing["default_profile_ids"] == [created["id"]]

    active = (await client.get(f"{BASE}/", params={"active_only": True})).json()
    assert active["total"] == 1


@pytest.mark.asyncio
async def test_other_org_sees_nothing(client_factory):
    client = await client_factory(admin())
    created = await _create(client)

    other = await client_factory(other_org_admin())
    resp = await other.get(f"{BASE}/{created['id']}")
    assert resp.status_code == 404
    assert resp.json()["code"] == "NotFoundError"
    assert (await other.get(f"{BASE}/")).json()["total"] == 0


@pytest.mark.asyncio
async def test_list_search_by_name_or_platform(client_factory):
    client = await client_factory(admin())
    encompass = await _create(client, profile_name="Daily", platform="Encompass")
    quarterly = await _create(client, profile_name="Quarterly Investor")

    by_name = (await client.get(f"{BASE}/", params={"search": "investor"})).json()
    assert [p["id"] for p in by_name["data"]] == [quarterly["id"]]

    by_platform = (await client.get(f"{BASE}/", params={"search": "ENCOMPASS"})).json()
    assert [p["id"] for p in by_platform["data"]] == [encompass["id"]]
    assert by_platform["total"] == 1

    other = await client_factory(other_org_admin())
    assert (await other.get(f"{BASE}/", params={"search": "daily"})).json()["total"] == 0


@pytest.mark.asyncio
async def test_delete_default_reports_missing_default(client_factory):
    client = await client_factory(admin())
    created = await _create(client, is_default=True)
    await _create(client, profile_name="Other")

    resp = await client.delete(f"{BASE}/{created['id']}")
    assert resp.status_code == 200
    assert resp.json() == {
        "profile_id": created["id"],
        "was_default": True,
        "org_has_default": False,
    }
    assert (await client.get(f"{BASE}/defaults")).json() == []
    assert (await client.get(f"{BASE}/{created['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_duplicate(client_factory):
    client = await client_factory(admin())
    created = await _create(
        client,
        is_default=True,
        overrides={"core_fields": {"LoanIdentifier": "deal.los_loan_id"}},
    )

    resp = await client.post(f"{BASE}/{created['id']}/duplicate")
    assert resp.status_code == 201
    clone = resp.json()
    assert clone["profile_name"] == "Default Export (Copy)"
    assert clone["is_default"] is False
    assert clone["core_field_mapping"] == created["core_field_mapping"]


@pytest.mark.asyncio
async def test_activate_deactivate_and_default_flags(client_factory):
    client = await client_factory(admin())
    first = await _create(client, is_default=True)
    second = await _create(client, profile_name="Second")

    resp = await client.post(f"{BASE}/{second['id']}/default")
    assert resp.json()["is_default"] is True
    defaults = (await client.get(f"{BASE}/defaults")).json()
    assert [p["id"] for p in defaults] == [second["id"]]

    resp = await client.delete(f"{BASE}/{second['id']}/default")
    assert resp.json()["is_default"] is False

    resp = await client.post(f"{BASE}/{first['id']}/deactivate")
    assert resp.json()["is_active"] is False
    resp = await client.post(f"{BASE}/{first['id']}/activate")
    assert resp.json()["is_active"] is True


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_resolve_default(client_factory):
    writer = await client_factory(admin())
    created = await _create(writer, platform="Encompass", extension_namespace="SUM", is_default=True)

    # Rebinding the user override makes the orchestrator-side call as a loan officer
    client = await client_factory(loan_officer())
    resp = await client.get(f"{BASE}/resolve")
    assert resp.status_code == 200
    resolved = resp.json()
    assert resolved["profile_id"] == created["id"]
    assert resolved["qualified_extension_fields"]["SUM:EncompassLoanGuid"] == "deal.external_id"


@pytest.mark.asyncio
async def test_resolve_without_default_is_404(client_factory):
    client = await client_factory(admin())
    await _create(client)

    resp = await client.get(f"{BASE}/resolve")
    assert resp.status_code == 404
    assert resp.json()["code"] == "NoDefaultProfileError"


@pytest.mark.asyncio
async def test_resolve_with_several_defaults_is_409(client_factory, monkeypatch):
    monkeypatch.setattr(settings, "SINGLE_DEFAULT_PER_ORG", False)
    client = await client_factory(admin())
    first = await _create(client, is_default=True)
    second = await _create(client, profile_name="Second", is_default=True)

    resp = await client.get(f"{BASE}/resolve")
    assert resp.status_code == 409
    body = resp.json()
    assert body["code"] == "AmbiguousDefaultError"
    assert sorted(body["profile_ids"]) == sorted([first["id"], second["id"]])

    resp = await client.get(f"{BASE}/resolve", params={"profile_id": first["id"]})
    assert resp.status_code == 200


# ---------------------------------------------------------------------------
# Mapping documents and drafts
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_mapping_export_import_and_fields(client_factory):
    client = await client_factory(admin())
    created = await _create(client, platform="LendingPad")

    document = (await client.get(f"{BASE}/{created['id']}/mapping")).json()
    assert document["extension_fields"]["LendingPadFileNumber"] == "deal.external_id"

    document["core_fields"]["CityName"] = "property.city"
    resp = await client.put(f"{BASE}/{created['id']}/mapping", json=document)
    assert resp.status_code == 200
    assert resp.json()["core_field_mapping"] == {"CityName": "property.city"}

    fields = (await client.get(f"{BASE}/{created['id']}/fields")).json()
    overrides = [row["field"] for row in fields["core_fields"] if row["is_override"]]
    assert overrides == ["CityName"]

    history = (await client.get(f"{BASE}/{created['id']}/history")).json()
    assert [e["event_type"] for e in history] == ["profile_created", "profile_mapping_imported"]


@pytest.mark.asyncio
async def test_drafts_start_and_switch(client_factory):
    client = await client_factory(loan_officer())

    draft = (await client.post(f"{BASE}/drafts", json={"platform": "Encompass"})).json()
    assert "EncompassLoanGuid" in draft["mapping"]["extension_fields"]

    draft["profile_name"] = "Quarterly"
    draft["mapping"]["core_fields"]["LoanIdentifier"] = "deal.custom"
    switched = (
        await client.post(f"{BASE}/drafts", json={"platform": "Arive", "draft": draft})
    ).json()
    assert switched["platform"] == "Arive"
    assert switched["profile_name"] == "Quarterly"
    assert switched["mapping"]["core_fields"]["LoanIdentifier"] == "deal.deal_number"
    assert "EncompassLoanGuid" not in switched["mapping"]["extension_fields"]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_storage_failure_returns_503(client_factory, db_session):
    client = await client_factory(admin())
    failure = OperationalError("UPDATE", {}, Exception("database is locked"))

    with patch.object(db_session, "commit", AsyncMock(side_effect=failure)):
        resp = await client.post(f"{BASE}/", json={"profile_name": "Doomed"})

    assert resp.status_code == 503
    body = resp.json()
    assert body["code"] == "StorageError"
    assert "database is locked" in body["detail"]


# ---------------------------------------------------------------------------
# Audit chain
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_audit_verify_is_admin_only(client_factory):
    client = await client_factory(admin())
    await _create(client, is_default=True)
    await _create(client, profile_name="Second", is_default=True)

    resp = await client.get(f"{BASE}/audit/verify")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "OK"
    assert body["events_checked"] == 3
    assert body["first_break_id"] is None

    reader = await client_factory(processor())
    resp = await reader.get(f"{BASE}/audit/verify")
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_audit_verify_reports_tampering(client_factory, db_session):
    client = await client_factory(admin())
    created = await _create(client)
    await client.patch(f"{BASE}/{created['id']}", json={"profile_name": "Renamed"})

    events = (await db_session.execute(select(AuditEvent).order_by(AuditEvent.id))).scalars().all()
    events[0].event_data = {"profile_name": "Forged"}
    await db_session.commit()

    body = (await client.get(f"{BASE}/audit/verify")).json()
    assert body["status"] == "TAMPERED"
    assert body["first_break_id"] == events[1].id


# ---------------------------------------------------------------------------
# Platforms + health
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_platform_catalog_routes(client_factory):
    client = await client_factory(loan_officer())

    platforms = (await client.get("/api/platforms/")).json()
    assert [p["platform_key"] for p in platforms][0] == "MISMO_34"
    encompass = next(p for p in platforms if p["platform_key"] == "Encompass")
    assert encompass["extension_overlay"] == {"EncompassLoanGuid": "deal.external_id"}

    catalog = (await client.get("/api/platforms/fields")).json()
    assert any(f["mismo_name"] == "LoanIdentifier" for f in catalog["core_fields"])

    defaults = (await client.get("/api/platforms/MISMO_34/defaults")).json()
    assert defaults["validation_rules"]["allow_partial_data"] is True

    resp = await client.get("/api/platforms/Blend/defaults")
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_health_reports_database(client_factory, async_engine):
    from src.main import app

    client = await client_factory(admin())

    async def _get_db_service():
        return DatabaseService(engine=async_engine)

    app.dependency_overrides[get_db_service] = _get_db_service
    resp = await client.get("/health/")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "healthy"
    assert body["database"] == {"status": "healthy"}
