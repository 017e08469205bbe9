"""Integration tests for profile and verification endpoints."""

from httpx import AsyncClient

from dogood.db.models import Account
from factories import auth_headers, create_organization, create_student, fetch


class TestProfile:
    async def test_me_requires_authentication(self, client: AsyncClient):
        response = await client.get("/api/v1/accounts/me")
        assert response.status_code == 401

    async def test_student_updates_name_and_goal(self, client: AsyncClient):
        student = await create_student()

        response = await client.patch(
            "/api/v1/accounts/me",
            json={"full_name": "Samira Student", "service_hours_goal": 60},
            headers=auth_headers(student),
        )

        assert response.status_code == 200
        assert response.json()["full_name"] == "Samira Student"
        assert response.json()["service_hours_goal"] == 60

    async def test_null_goal_is_422(self, client: AsyncClient):
        student = await create_student()

        response = await client.patch(
            "/api/v1/accounts/me", json={"service_hours_goal": None}, headers=auth_headers(student)
        )

        assert response.status_code == 422
        assert response.json()["field"] == "service_hours_goal"
        assert (await fetch(Account, student.id)).service_hours_goal is not None

    async def test_verified_is_not_an_accepted_field(self, client: AsyncClient):
        org = await create_organization(verified=False)

        response = await client.patch("/api/v1/accounts/me", json={"verified": True}, headers=auth_headers(org))

        assert response.status_code == 422
        assert (await fetch(Account, org.id)).verified is False

    async def test_student_cannot_write_organization_fields(self, client: AsyncClient):
        student = await create_student()

        response = await client.patch(
            "/api/v1/accounts/me", json={"organization_name": "Fake Org"}, headers=auth_headers(student)
        )

        assert response.status_code == 403
        assert response.json()["reason"] == "WrongRole"
        assert response.json()["field"] == "organization_name"

    async def test_anonymous_update_is_401(self, client: AsyncClient):
        response = await client.patch("/api/v1/accounts/me", json={"full_name": "Ghost"})
        assert response.status_code == 401


class TestVerification:
    async def test_verifier_grants_verification(self, client: AsyncClient, verifier_headers):
        org = await create_organization(verified=False)

        response = await client.post(
            f"/api/v1/admin/organizations/{org.id}/verification",
            json={"verified": True},
            headers=verifier_headers,
        )

        assert response.status_code == 200
        assert response.json()["verified"] is True
        assert (await fetch(Account, org.id)).verified is True

    async def test_wrong_key_is_403(self, client: AsyncClient):
        org = await create_organization(verified=False)

        response = await client.post(
            f"/api/v1/admin/organizations/{org.id}/verification",
            json={"verified": True},
            headers={"X-Verifier-Key": "guess"},
        )

        assert response.status_code == 403
        assert (await fetch(Account, org.id)).verified is False

    async def test_account_token_is_not_enough(self, client: AsyncClient):
        org = await create_organization(verified=False)

        response = await client.post(
            f"/api/v1/admin/organizations/{org.id}/verification",
            json={"verified": True},
            headers=auth_headers(org),
        )

        assert response.status_code == 403

    async def test_student_cannot_be_verified(self, client: AsyncClient, verifier_headers):
        student = await create_student()

        response = await client.post(
            f"/api/v1/admin/organizations/{student.id}/verification",
            json={"verified": True},
            headers=verifier_headers,
        )

        assert response.status_code == 422

    async def test_unknown_account_is_404(self, client: AsyncClient, verifier_headers):
        response = await client.post(
            "/api/v1/admin/organizations/9999/verification",
            json={"verified": True},
            headers=verifier_headers,
        )
        assert response.status_code == 404
