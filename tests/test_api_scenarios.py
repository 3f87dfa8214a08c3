"""End-to-end tests through the HTTP API."""
import pytest
from httpx import AsyncClient

from conftest import CLIENT_PAYLOAD, PDF_BYTES


async def _login(anon_client: AsyncClient, username: str, password: str) -> dict:
    response = await anon_client.post("/api/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.mark.asyncio
async def test_full_appointment_lifecycle(admin, anon_client, client_for):
    async with client_for(admin) as admin_api, anon_client:
        r = await admin_api.post("/api/teams", json={"name": "Ops"})
        assert r.status_code == 201
        ops = r.json()
        assert ops["id"] >= 1
        assert ops["created_by"] == admin.id

        r = await admin_api.post(
            "/api/users",
            json={"username": "alice", "password": "p1", "role": "collector", "team_id": ops["id"]},
        )
        assert r.status_code == 201
        alice = r.json()
        assert alice["team_id"] == ops["id"]
        assert alice["created_by"] == admin.id
        assert "password" not in alice and "password_hash" not in alice

        r = await admin_api.post(
            "/api/users",
            json={"username": "bob", "password": "p2", "role": "approver", "team_id": ops["id"]},
        )
        assert r.status_code == 201
        bob = r.json()

        alice_headers = await _login(anon_client, "alice", "p1")
        bob_headers = await _login(anon_client, "bob", "p2")

        r = await anon_client.post("/api/clients", json=CLIENT_PAYLOAD, headers=alice_headers)
        assert r.status_code == 201
        client = r.json()
        assert client["full_name"] == CLIENT_PAYLOAD["full_name"]

        # Server-controlled fields in the payload are ignored
        r = await anon_client.post(
            "/api/appointments",
            json={"client_id": client["id"], "status": "approved", "collected_by": 999, "approved_by": 5},
            headers=alice_headers,
        )
        assert r.status_code == 201
        appointment = r.json()
        assert appointment["status"] == "pending"
        assert appointment["collected_by"] == alice["id"]
        assert appointment["approved_by"] is None
        assert appointment["team_id"] == ops["id"]
        assert appointment["booking_details"]["date"]

        r = await anon_client.patch(f"/api/appointments/{appointment['id']}", headers=bob_headers)
        assert r.status_code == 200
        assert r.json()["status"] == "approved"
        assert r.json()["approved_by"] == bob["id"]

        r = await anon_client.post(
            f"/api/appointments/{appointment['id']}/pdf",
            files={"pdf": ("signed.pdf", PDF_BYTES, "application/pdf")},
            headers=bob_headers,
        )
        assert r.status_code == 200
        assert r.json()["pdf_url"] == f"/api/appointments/{appointment['id']}/download-pdf"
        assert r.json()["status"] == "approved"

        r = await anon_client.get(f"/api/appointments/{appointment['id']}/download-pdf", headers=alice_headers)
        assert r.status_code == 200
        assert r.content == PDF_BYTES
        assert r.headers["content-type"] == "application/pdf"
        assert f"appointment-{appointment['id']}.pdf" in r.headers["content-disposition"]


@pytest.mark.asyncio
async def test_create_user_unauthenticated_vs_forbidden(anon_client, client_for, collector):
    payload = {"username": "mallory", "password": "x", "role": "admin"}
    async with anon_client:
        r = await anon_client.post("/api/users", json=payload)
        assert r.status_code == 401
    async with client_for(collector) as api:
        r = await api.post("/api/users", json=payload)
        assert r.status_code == 403


@pytest.mark.asyncio
async def test_invalid_token_is_unauthenticated(anon_client):
    async with anon_client:
        r = await anon_client.get("/api/appointments", headers={"Authorization": "Bearer not-a-jwt"})
        assert r.status_code == 401


@pytest.mark.asyncio
async def test_login_rejects_bad_credentials_uniformly(anon_client, admin):
    async with anon_client:
        wrong = await anon_client.post("/api/login", json={"username": "root", "password": "bad"})
        ghost = await anon_client.post("/api/login", json={"username": "ghost", "password": "bad"})
    assert wrong.status_code == ghost.status_code == 401
    assert wrong.json() == ghost.json()


@pytest.mark.asyncio
async def test_current_user_and_refresh(anon_client, admin):
    async with anon_client:
        r = await anon_client.post("/api/login", json={"username": "root", "password": "root-pass"})
        tokens = r.json()
        me = await anon_client.get("/api/user", headers={"Authorization": f"Bearer {tokens['access_token']}"})
        assert me.status_code == 200
        assert me.json()["username"] == "root"
        assert "password_hash" not in me.json()

        # A refresh token is not an access token
        r = await anon_client.get("/api/user", headers={"Authorization": f"Bearer {tokens['refresh_token']}"})
        assert r.status_code == 401

        r = await anon_client.post("/api/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert r.status_code == 200
        assert r.json()["access_token"]


@pytest.mark.asyncio
async def test_change_password(anon_client, client_for, collector):
    async with client_for(collector) as api, anon_client:
        r = await api.post("/api/users/change-password", json={"current_password": "wrong", "new_password": "n"})
        assert r.status_code == 400
        r = await api.post("/api/users/change-password", json={"current_password": "p1", "new_password": "p1-new"})
        assert r.status_code == 200
        old = await anon_client.post("/api/login", json={"username": "alice", "password": "p1"})
        new = await anon_client.post("/api/login", json={"username": "alice", "password": "p1-new"})
        assert old.status_code == 401
        assert new.status_code == 200


@pytest.mark.asyncio
async def test_duplicate_username_conflicts(client_for, admin, collector):
    async with client_for(admin) as api:
        r = await api.post("/api/users", json={"username": "alice", "password": "x", "role": "approver"})
        assert r.status_code == 409


@pytest.mark.asyncio
async def test_team_membership_assignment(client_for, store, admin, team, collector):
    other = store.create_team(name="Field", created_by=admin.id)
    async with client_for(admin) as api:
        r = await api.post("/api/teams/members", json={"team_id": other.id, "user_id": collector.id})
        assert r.status_code == 201
        assert r.json()["added_by"] == admin.id

        r = await api.get(f"/api/teams/{other.id}/members")
        assert [u["id"] for u in r.json()] == [collector.id]

        r = await api.post("/api/teams/members", json={"team_id": 0, "user_id": collector.id})
        assert r.status_code == 200
        r = await api.get(f"/api/teams/{other.id}/members")
        assert r.json() == []

        r = await api.get("/api/teams/abc/members")
        assert r.status_code == 400
        r = await api.get("/api/teams/999/members")
        assert r.status_code == 404

        r = await api.get("/api/teams")
        assert {t["name"] for t in r.json()} == {"Ops", "Field"}


@pytest.mark.asyncio
async def test_schema_violations_are_invalid_input(client_for, collector):
    async with client_for(collector) as api:
        r = await api.post("/api/clients", json={**CLIENT_PAYLOAD, "workplace": "France"})
        assert r.status_code == 400
        r = await api.post("/api/clients", json={**CLIENT_PAYLOAD, "phone_number": "123"})
        assert r.status_code == 400
        r = await api.post("/api/clients", json={**CLIENT_PAYLOAD, "email": "not-an-email"})
        assert r.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize("bad_id", ["abc", "0", "-1", "1.5"])
async def test_malformed_ids_are_rejected(client_for, collector, bad_id):
    async with client_for(collector) as api:
        assert (await api.get(f"/api/appointments/{bad_id}")).status_code == 400
        assert (await api.get(f"/api/clients/{bad_id}")).status_code == 400


@pytest.fixture
def appointment(store, team, collector, client_record):
    return store.create_appointment(client_id=client_record.id, team_id=team.id, collected_by=collector.id)


@pytest.mark.asyncio
async def test_missing_appointment_and_missing_pdf_are_distinct(client_for, collector, appointment):
    async with client_for(collector) as api:
        r = await api.get("/api/appointments/999/download-pdf")
        assert r.status_code == 404
        assert r.json()["detail"] == "Appointment not found"
        r = await api.get(f"/api/appointments/{appointment.id}/download-pdf")
        assert r.status_code == 404
        assert r.json()["detail"] == "PDF not found"


@pytest.mark.asyncio
async def test_pdf_upload_rules(client_for, collector, approver, appointment):
    url = f"/api/appointments/{appointment.id}/pdf"
    async with client_for(approver) as api:
        r = await api.post(url, files={"pdf": ("signed.pdf", PDF_BYTES, "application/pdf")})
        assert r.status_code == 409

        await api.patch(f"/api/appointments/{appointment.id}")

        r = await api.post(url, files={"pdf": ("notes.txt", b"hello", "text/plain")})
        assert r.status_code == 400
        r = await api.post(url, files={"other": ("signed.pdf", PDF_BYTES, "application/pdf")})
        assert r.status_code == 400
        r = await api.post("/api/appointments/999/pdf", files={"pdf": ("s.pdf", PDF_BYTES, "application/pdf")})
        assert r.status_code == 404

    async with client_for(collector) as api:
        r = await api.post(url, files={"pdf": ("signed.pdf", PDF_BYTES, "application/pdf")})
        assert r.status_code == 403


@pytest.mark.asyncio
async def test_only_approvers_approve_and_only_once(client_for, collector, approver, appointment):
    async with client_for(collector) as api:
        r = await api.patch(f"/api/appointments/{appointment.id}")
        assert r.status_code == 403
    async with client_for(approver) as api:
        r = await api.patch(f"/api/appointments/{appointment.id}", json={"status": "pending", "approved_by": 1})
        assert r.status_code == 200
        assert r.json()["status"] == "approved"
        assert r.json()["approved_by"] == approver.id
        r = await api.patch(f"/api/appointments/{appointment.id}")
        assert r.status_code == 409
        r = await api.get(f"/api/appointments/{appointment.id}")
        assert r.json()["status"] == "approved"


@pytest.mark.asyncio
async def test_appointments_are_scoped_to_team(client_for, store, admin, collector, appointment):
    outsider = store.create_user(username="eve", password="x", role="approver")
    async with client_for(outsider) as api:
        assert (await api.get("/api/appointments")).json() == []
        assert (await api.get(f"/api/appointments/{appointment.id}")).status_code == 403
    async with client_for(collector) as api:
        assert [a["id"] for a in (await api.get("/api/appointments")).json()] == [appointment.id]
    async with client_for(admin) as api:
        assert [a["id"] for a in (await api.get("/api/appointments")).json()] == [appointment.id]


@pytest.mark.asyncio
async def test_collector_without_team_must_name_one(client_for, store, admin, team, client_record):
    loner = store.create_user(username="lone", password="x", role="collector")
    async with client_for(loner) as api:
        r = await api.post("/api/appointments", json={"client_id": client_record.id})
        assert r.status_code == 400
        r = await api.post("/api/appointments", json={"client_id": client_record.id, "team_id": team.id})
        assert r.status_code == 201
        r = await api.post("/api/appointments", json={"client_id": 999, "team_id": team.id})
        assert r.status_code == 404


@pytest.mark.asyncio
async def test_collector_in_a_team_cannot_file_for_another(client_for, store, admin, team, collector, client_record):
    other = store.create_team(name="Field", created_by=admin.id)
    async with client_for(collector) as api:
        r = await api.post("/api/appointments", json={"client_id": client_record.id, "team_id": other.id})
        assert r.status_code == 403
        assert (await api.get("/api/appointments")).json() == []

        r = await api.post("/api/appointments", json={"client_id": client_record.id, "team_id": team.id})
        assert r.status_code == 201
        created = r.json()
        assert created["team_id"] == team.id
        r = await api.get(f"/api/appointments/{created['id']}")
        assert r.status_code == 200


@pytest.mark.asyncio
async def test_approval_is_gated_by_role_not_team(client_for, store, admin, approver, appointment):
    teamless = store.create_user(username="bob2", password="x", role="approver")
    elsewhere = store.create_team(name="Field", created_by=admin.id)
    remote = store.create_user(username="dana", password="x", role="approver", team_id=elsewhere.id)

    async with client_for(teamless) as api:
        r = await api.patch(f"/api/appointments/{appointment.id}")
        assert r.status_code == 200
        assert r.json()["approved_by"] == teamless.id

    async with client_for(remote) as api:
        r = await api.post(
            f"/api/appointments/{appointment.id}/pdf",
            files={"pdf": ("signed.pdf", PDF_BYTES, "application/pdf")},
        )
        assert r.status_code == 200
        # Reading stays team scoped
        r = await api.get(f"/api/appointments/{appointment.id}")
        assert r.status_code == 403

    async with client_for(approver) as api:
        r = await api.get(f"/api/appointments/{appointment.id}/download-pdf")
        assert r.content == PDF_BYTES


@pytest.mark.asyncio
async def test_rendered_summary_pdf(client_for, collector, appointment):
    async with client_for(collector) as api:
        r = await api.get(f"/api/appointments/{appointment.id}/pdf")
        assert r.status_code == 200
        assert r.content.startswith(b"%PDF")
        assert r.headers["content-type"] == "application/pdf"


@pytest.mark.asyncio
async def test_request_id_is_echoed(anon_client):
    async with anon_client:
        r = await anon_client.get("/health", headers={"X-Request-ID": "abc-123"})
        assert r.status_code == 200
        assert r.headers["X-Request-ID"] == "abc-123"
