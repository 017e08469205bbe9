"""Integration tests for bookmark endpoints."""

from httpx import AsyncClient

from factories import auth_headers, create_opportunity_row, create_organization, create_student


class TestBookmarks:
    async def test_save_is_idempotent(self, client: AsyncClient):
        org = await create_organization()
        opp = await create_opportunity_row(org)
        student = await create_student()
        url = f"/api/v1/opportunities/{opp.id}/bookmark"

        first = await client.put(url, headers=auth_headers(student))
        second = await client.put(url, headers=auth_headers(student))

        assert first.status_code == 201
        assert second.status_code == 200
        assert first.json()["id"] == second.json()["id"]

    async def test_list_and_remove(self, client: AsyncClient):
        org = await create_organization()
        opp = await create_opportunity_row(org)
        student = await create_student()
        headers = auth_headers(student)
        await client.put(f"/api/v1/opportunities/{opp.id}/bookmark", headers=headers)

        listed = await client.get("/api/v1/bookmarks/mine", headers=headers)
        assert [b["opportunity_id"] for b in listed.json()] == [opp.id]

        removed = await client.delete(f"/api/v1/opportunities/{opp.id}/bookmark", headers=headers)
        assert removed.status_code == 204
        assert (await client.get("/api/v1/bookmarks/mine", headers=headers)).json() == []

    async def test_remove_missing_is_404(self, client: AsyncClient):
        org = await create_organization()
        opp = await create_opportunity_row(org)
        student = await create_student()

        response = await client.delete(f"/api/v1/opportunities/{opp.id}/bookmark", headers=auth_headers(student))

        assert response.status_code == 404

    async def test_organization_is_403(self, client: AsyncClient):
        org = await create_organization()
        opp = await create_opportunity_row(org)

        response = await client.put(f"/api/v1/opportunities/{opp.id}/bookmark", headers=auth_headers(org))

        assert response.status_code == 403
        assert response.json()["reason"] == "WrongRole"

    async def test_anonymous_is_401(self, client: AsyncClient):
        org = await create_organization()
        opp = await create_opportunity_row(org)
        response = await client.get("/api/v1/bookmarks/mine")
        assert response.status_code == 401
        response = await client.put(f"/api/v1/opportunities/{opp.id}/bookmark")
        assert response.status_code == 401
