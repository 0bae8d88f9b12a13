# backend/tests/routes/test_gyms_routes.py
"""Tests for gym setup and space management routes."""

from hourgym.core.enums import UserRole
from hourgym.models import Gym, User


class TestGymRoutes:
    def test_create_gym(self, client, auth_headers, db, renter):
        response = client.post(
            "/api/v1/gyms",
            json={"name": "Summit Athletics", "timezone": "America/Chicago"},
            headers=auth_headers(renter),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Summit Athletics"
        assert body["owner_id"] == renter.id
        assert body["cancellation_policy"] == "moderate"
        assert body["stripe_onboarded"] is False
        assert db.query(Gym).filter(Gym.owner_id == renter.id).count() == 1

    def test_second_gym_rejected(self, client, auth_headers, owner, gym):
        response = client.post(
            "/api/v1/gyms", json={"name": "Another Gym"}, headers=auth_headers(owner)
        )

        assert response.status_code == 422
        assert response.json()["code"] == "GYM_ALREADY_EXISTS"

    def test_unknown_timezone_rejected(self, client, auth_headers, renter):
        response = client.post(
            "/api/v1/gyms",
            json={"name": "Summit", "timezone": "Nowhere/Land"},
            headers=auth_headers(renter),
        )

        assert response.status_code == 422
        assert response.json()["code"] == "validation_error"

    def test_my_gym_lists_spaces(self, client, auth_headers, owner, gym, space):
        response = client.get("/api/v1/gyms/me", headers=auth_headers(owner))

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == gym.id
        assert [s["name"] for s in body["spaces"]] == ["Mat Room"]

    def test_my_gym_requires_owner_role(self, client, auth_headers, renter):
        response = client.get("/api/v1/gyms/me", headers=auth_headers(renter))

        assert response.status_code == 403
        assert response.json()["code"] == "GYM_OWNER_REQUIRED"

    def test_update_policy(self, client, auth_headers, owner, gym):
        response = client.patch(
            f"/api/v1/gyms/{gym.id}",
            json={"cancellation_policy": "strict"},
            headers=auth_headers(owner),
        )

        assert response.status_code == 200
        assert response.json()["cancellation_policy"] == "strict"
        assert response.json()["name"] == "Ironworks Gym"

    def test_update_rejects_unknown_policy(self, client, auth_headers, owner, gym):
        response = client.patch(
            f"/api/v1/gyms/{gym.id}",
            json={"cancellation_policy": "lenient"},
            headers=auth_headers(owner),
        )

        assert response.status_code == 422


class TestSpaceManagementRoutes:
    def test_create_space(self, client, auth_headers, owner, gym):
        response = client.post(
            f"/api/v1/gyms/{gym.id}/spaces",
            json={"name": "Turf Lane", "space_type": "turf", "hourly_rate": 4000, "capacity": 8},
            headers=auth_headers(owner),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["gym_id"] == gym.id
        assert body["hourly_rate"] == 4000
        assert body["is_active"] is True

    def test_create_space_below_minimum_rate(self, client, auth_headers, owner, gym):
        response = client.post(
            f"/api/v1/gyms/{gym.id}/spaces",
            json={"name": "Cheap Mats", "hourly_rate": 1000},
            headers=auth_headers(owner),
        )

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "HOURLY_RATE_TOO_LOW"
        assert body["errors"]["min_hourly_rate"] == 1500

    def test_update_space(self, client, auth_headers, owner, space):
        response = client.patch(
            f"/api/v1/spaces/{space.id}",
            json={"hourly_rate": 6000},
            headers=auth_headers(owner),
        )

        assert response.status_code == 200
        assert response.json()["hourly_rate"] == 6000

    def test_update_space_by_other_owner_forbidden(self, client, auth_headers, db, space):
        rival = User(email="rival@gym.test", full_name="Rival Owner", role=UserRole.GYM_OWNER.value)
        db.add(rival)
        db.commit()

        response = client.patch(
            f"/api/v1/spaces/{space.id}", json={"is_active": False}, headers=auth_headers(rival)
        )

        assert response.status_code == 403
        assert response.json()["code"] == "NOT_SPACE_OWNER"

    def test_list_spaces_is_public(self, client, space):
        response = client.get("/api/v1/spaces")

        assert response.status_code == 200
        body = response.json()
        assert [s["id"] for s in body["spaces"]] == [space.id]
        assert body["limit"] == 12
        assert body["offset"] == 0

    def test_list_spaces_by_type(self, client, space):
        response = client.get("/api/v1/spaces", params={"space_type": "cage"})

        assert response.status_code == 200
        assert response.json()["spaces"] == []
