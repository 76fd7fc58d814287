"""
Integration tests for the HTTP API.
Tests complete request/response cycles against an in-memory database.
"""

import pytest
import uuid
from decimal import Decimal
from httpx import AsyncClient
from fastapi import status

from app.models.property import PropertyStatus, ApprovalStatus
from app.models.user import User
from tests.conftest import TEST_PASSWORD, PropertyFactory, auth_headers


def detail_fields(body: dict) -> dict:
    return {item["field"]: item["message"] for item in body.get("details", [])}


class TestAuthenticationEndpoints:
    """Integration tests for authentication endpoints."""

    async def test_register_seller(self, client: AsyncClient):
        response = await client.post("/auth/register", json={
            "email": "Akosua@Example.com",
            "password": "password123",
            "full_name": "Akosua Owusu",
            "role": "seller"
        })

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["email"] == "akosua@example.com"
        assert data["role"] == "seller"
        assert data["is_verified"] is False
        assert data["permissions"] == []
        assert "hashed_password" not in data

    async def test_register_admin_refused(self, client: AsyncClient):
        response = await client.post("/auth/register", json={
            "email": "boss@example.com",
            "password": "password123",
            "full_name": "Self Made Admin",
            "role": "admin"
        })

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "role" in detail_fields(response.json())

    async def test_register_duplicate(self, client: AsyncClient, test_seller: User):
        response = await client.post("/auth/register", json={
            "email": test_seller.email,
            "password": "password123",
            "full_name": "Second Seller"
        })

        assert response.status_code == status.HTTP_409_CONFLICT

    async def test_login_success(self, client: AsyncClient, test_agent: User):
        response = await client.post("/auth/login", json={
            "email": test_agent.email,
            "password": TEST_PASSWORD
        })

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["refresh_token"]
        assert data["user"]["email"] == test_agent.email
        assert "create_property" in data["user"]["permissions"]

    async def test_login_invalid_credentials(self, client: AsyncClient, test_agent: User):
        response = await client.post("/auth/login", json={
            "email": test_agent.email,
            "password": "wrongpassword"
        })

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        data = response.json()
        assert data["code"] == "AUTH_INVALID_CREDENTIALS"
        assert data["error"] == "Invalid email or password"

    async def test_login_inactive_user(self, client: AsyncClient, test_inactive_user: User):
        response = await client.post("/auth/login", json={
            "email": test_inactive_user.email,
            "password": TEST_PASSWORD
        })

        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_refresh_and_me(self, client: AsyncClient, test_seller: User):
        login = await client.post("/auth/login", json={"email": test_seller.email, "password": TEST_PASSWORD})

        refreshed = await client.post("/auth/refresh", json={"refresh_token": login.json()["refresh_token"]})
        assert refreshed.status_code == status.HTTP_200_OK

        me = await client.get(
            "/auth/me", headers={"Authorization": f"Bearer {refreshed.json()['access_token']}"}
        )
        assert me.status_code == status.HTTP_200_OK
        assert me.json()["id"] == str(test_seller.id)

    async def test_me_without_token(self, client: AsyncClient):
        response = await client.get("/auth/me")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "AUTH_UNAUTHORIZED"

    async def test_me_with_invalid_token(self, client: AsyncClient):
        response = await client.get("/auth/me", headers={"Authorization": "Bearer invalid_token"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestPropertyEndpoints:
    """Listing creation, search, detail, update and archive."""

    async def test_create_property(self, client: AsyncClient, test_seller: User):
        response = await client.post(
            "/properties",
            json=PropertyFactory.create_property_data(
                status="active", images=PropertyFactory.image_inputs(3)
            ),
            headers=auth_headers(test_seller)
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["status"] == "pending"
        assert data["approval_status"] == "pending"
        assert data["owner_id"] == str(test_seller.id)
        assert data["price"] == 50000.0
        assert data["warnings"] == []
        assert len(data["images"]) == 3
        assert data["images"][0]["is_primary"] is True

    async def test_create_requires_token(self, client: AsyncClient):
        response = await client.post("/properties", json=PropertyFactory.create_property_data())

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    @pytest.mark.parametrize("fixture_name", ["test_buyer", "unverified_seller"])
    async def test_create_forbidden(self, request, client: AsyncClient, fixture_name):
        user = request.getfixturevalue(fixture_name)

        response = await client.post(
            "/properties", json=PropertyFactory.create_property_data(), headers=auth_headers(user)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["code"] == "AUTH_INSUFFICIENT_PERMISSIONS"

    async def test_create_with_too_few_images(self, client: AsyncClient, test_seller: User):
        response = await client.post(
            "/properties",
            json=PropertyFactory.create_property_data(images=PropertyFactory.image_inputs(2)),
            headers=auth_headers(test_seller)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        data = response.json()
        assert data["code"] == "VALIDATION_ERROR"
        assert detail_fields(data)["images"] == "At least 3 images required"

    async def test_create_reports_every_invalid_field(self, client: AsyncClient, test_seller: User):
        response = await client.post(
            "/properties",
            json=PropertyFactory.create_property_data(title="abc", price=-5, features=[]),
            headers=auth_headers(test_seller)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert {"title", "price", "features"} <= set(detail_fields(response.json()))

    async def test_create_with_empty_payload(self, client: AsyncClient, test_seller: User):
        response = await client.post("/properties", json={}, headers=auth_headers(test_seller))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        data = response.json()
        assert data["code"] == "VALIDATION_ERROR"
        assert {"title", "description", "price", "address", "city", "region"} <= set(detail_fields(data))

    async def test_create_with_two_primary_images(self, client: AsyncClient, test_seller: User):
        images = PropertyFactory.image_inputs(3, primary_index=0)
        images[2]["is_primary"] = True

        response = await client.post(
            "/properties",
            json=PropertyFactory.create_property_data(images=images),
            headers=auth_headers(test_seller)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert detail_fields(response.json())["images"] == "Only one image can be primary"

    async def test_create_with_unknown_staging_id_warns(self, client: AsyncClient, test_seller: User):
        response = await client.post(
            "/properties",
            json=PropertyFactory.create_property_data(staging_id=str(uuid.uuid4())),
            headers=auth_headers(test_seller)
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert len(response.json()["warnings"]) == 1

    async def test_list_only_public(self, client: AsyncClient, public_property, pending_property):
        response = await client.get("/properties")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total"] == 1
        assert data["page"] == 1
        assert data["total_pages"] == 1
        assert data["has_next"] is False
        assert data["has_previous"] is False
        assert [item["id"] for item in data["properties"]] == [str(public_property.id)]

    async def test_list_filters(self, client: AsyncClient, property_repository, test_seller: User):
        await PropertyFactory.create_property(property_repository, owner_id=test_seller.id, city="Kumasi", region="Ashanti")
        await PropertyFactory.create_property(property_repository, owner_id=test_seller.id)

        response = await client.get("/properties", params={"city": "kumasi", "property_type": "house"})

        assert response.json()["total"] == 1
        assert response.json()["properties"][0]["city"] == "Kumasi"

    async def test_list_pagination(self, client: AsyncClient, property_repository, test_seller: User):
        for _ in range(3):
            await PropertyFactory.create_property(property_repository, owner_id=test_seller.id)

        response = await client.get("/properties", params={"page": 2, "limit": 2})

        data = response.json()
        assert data["total"] == 3
        assert len(data["properties"]) == 1
        assert data["has_previous"] is True
        assert data["has_next"] is False

    async def test_list_rejects_inverted_price_range(self, client: AsyncClient):
        response = await client.get("/properties", params={"min_price": 5000, "max_price": 1000})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "min_price" in detail_fields(response.json())

    async def test_list_rejects_bad_enum(self, client: AsyncClient):
        response = await client.get("/properties", params={"property_type": "castle"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "property_type" in detail_fields(response.json())

    async def test_list_area_feature_and_sort(self, client: AsyncClient, property_repository, test_seller: User):
        await PropertyFactory.create_property(
            property_repository, owner_id=test_seller.id, price=Decimal("400000"),
            square_feet=1500, features=["Garden", "Borehole"]
        )
        await PropertyFactory.create_property(
            property_repository, owner_id=test_seller.id, price=Decimal("250000"),
            square_feet=1200, features=["Borehole", "Garden", "Gated"]
        )
        await PropertyFactory.create_property(
            property_repository, owner_id=test_seller.id, square_feet=1300, features=["Garden"]
        )

        response = await client.get("/properties", params=[
            ("min_area", 1000), ("max_area", 2000), ("features", "Garden"), ("features", "Borehole"),
            ("sort_by", "price"), ("sort_order", "asc"),
        ])

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total"] == 2
        assert [item["price"] for item in data["properties"]] == [250000.0, 400000.0]

    async def test_list_rejects_inverted_area_range(self, client: AsyncClient):
        response = await client.get("/properties", params={"min_area": 3000, "max_area": 1000})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "min_area" in detail_fields(response.json())

    async def test_list_rejects_unknown_sort(self, client: AsyncClient):
        response = await client.get("/properties", params={"sort_by": "title"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "sort_by" in detail_fields(response.json())

    async def test_featured(self, client: AsyncClient, property_repository, test_seller: User):
        featured = await PropertyFactory.create_property(
            property_repository, owner_id=test_seller.id, is_featured=True
        )
        await PropertyFactory.create_property(property_repository, owner_id=test_seller.id)

        response = await client.get("/properties/featured")

        assert response.status_code == status.HTTP_200_OK
        assert [item["id"] for item in response.json()] == [str(featured.id)]

    async def test_mine(self, client: AsyncClient, public_property, pending_property, test_seller: User):
        response = await client.get("/properties/mine", headers=auth_headers(test_seller))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["total"] == 2

    async def test_get_public_property_counts_view(self, client: AsyncClient, public_property):
        response = await client.get(f"/properties/{public_property.id}")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["views_count"] == 1
        assert data["owner"]["email"] == "seller@test.com"

    async def test_hidden_property_is_not_found(self, client: AsyncClient, pending_property, test_buyer: User):
        anonymous = await client.get(f"/properties/{pending_property.id}")
        stranger = await client.get(f"/properties/{pending_property.id}", headers=auth_headers(test_buyer))

        assert anonymous.status_code == status.HTTP_404_NOT_FOUND
        assert anonymous.json()["code"] == "PROPERTY_NOT_FOUND"
        assert stranger.status_code == status.HTTP_404_NOT_FOUND

    async def test_owner_sees_hidden_property(self, client: AsyncClient, pending_property, test_seller: User):
        response = await client.get(f"/properties/{pending_property.id}", headers=auth_headers(test_seller))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["views_count"] == 0

    async def test_invalid_token_on_public_route_is_ignored(self, client: AsyncClient, public_property):
        response = await client.get(
            f"/properties/{public_property.id}", headers={"Authorization": "Bearer not-a-token"}
        )

        assert response.status_code == status.HTTP_200_OK

    async def test_malformed_id(self, client: AsyncClient):
        response = await client.get("/properties/not-a-uuid")

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_update_property(self, client: AsyncClient, public_property, test_seller: User):
        response = await client.put(
            f"/properties/{public_property.id}",
            json={"title": "Renovated House in Cantonments", "bathrooms": None},
            headers=auth_headers(test_seller)
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["title"] == "Renovated House in Cantonments"
        assert data["bathrooms"] is None
        assert data["bedrooms"] == 4

    async def test_update_refuses_moderation_fields(self, client: AsyncClient, public_property, test_seller: User):
        response = await client.put(
            f"/properties/{public_property.id}",
            json={"status": "active", "approval_status": "approved"},
            headers=auth_headers(test_seller)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert {"status", "approval_status"} <= set(detail_fields(response.json()))

    async def test_update_by_stranger(self, client: AsyncClient, public_property, test_agent: User):
        response = await client.put(
            f"/properties/{public_property.id}",
            json={"title": "Not my listing at all"},
            headers=auth_headers(test_agent)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["code"] == "PROPERTY_ACCESS_DENIED"

    async def test_update_by_admin(self, client: AsyncClient, public_property, test_admin: User):
        response = await client.put(
            f"/properties/{public_property.id}",
            json={"price": 720000},
            headers=auth_headers(test_admin)
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["price"] == 720000.0

    async def test_archive_property(self, client: AsyncClient, public_property, test_seller: User):
        response = await client.delete(f"/properties/{public_property.id}", headers=auth_headers(test_seller))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "archived"
        assert response.json()["archived_at"] is not None

        listing = await client.get("/properties")
        assert listing.json()["total"] == 0

    async def test_archive_missing_property(self, client: AsyncClient, test_seller: User):
        response = await client.delete(f"/properties/{uuid.uuid4()}", headers=auth_headers(test_seller))

        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestAdminEndpoints:
    """Moderation, verification and the error log."""

    async def test_pending_queue(self, client: AsyncClient, pending_property, public_property, test_admin: User):
        response = await client.get("/admin/properties/pending", headers=auth_headers(test_admin))

        assert response.status_code == status.HTTP_200_OK
        assert [item["id"] for item in response.json()["properties"]] == [str(pending_property.id)]

    async def test_non_admin_refused(self, client: AsyncClient, test_seller: User):
        response = await client.get("/admin/properties/pending", headers=auth_headers(test_seller))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["code"] == "AUTH_INSUFFICIENT_PERMISSIONS"

    async def test_approve_publishes_listing(self, client: AsyncClient, pending_property, test_admin: User):
        response = await client.post(
            f"/admin/properties/{pending_property.id}/approval",
            json={"action": "approve"},
            headers=auth_headers(test_admin)
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "active"
        assert response.json()["approved_by"] == str(test_admin.id)

        public = await client.get(f"/properties/{pending_property.id}")
        assert public.status_code == status.HTTP_200_OK

    async def test_reject_requires_reason(self, client: AsyncClient, pending_property, test_admin: User):
        response = await client.post(
            f"/admin/properties/{pending_property.id}/approval",
            json={"action": "reject"},
            headers=auth_headers(test_admin)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        messages = [item["message"] for item in response.json()["details"]]
        assert "A reason is required when rejecting a property" in messages

    async def test_reject_then_owner_resubmits(
        self, client: AsyncClient, pending_property, test_admin: User, test_seller: User
    ):
        rejected = await client.post(
            f"/admin/properties/{pending_property.id}/approval",
            json={"action": "reject", "reason": "Photos do not match the address"},
            headers=auth_headers(test_admin)
        )
        assert rejected.json()["rejection_reason"] == "Photos do not match the address"

        resubmitted = await client.put(
            f"/properties/{pending_property.id}",
            json={"description": "Updated description with the correct photographs attached."},
            headers=auth_headers(test_seller)
        )

        assert resubmitted.json()["status"] == "pending"
        assert resubmitted.json()["approval_status"] == "pending"
        assert resubmitted.json()["rejection_reason"] is None

    async def test_review_non_pending(self, client: AsyncClient, public_property, test_admin: User):
        response = await client.post(
            f"/admin/properties/{public_property.id}/approval",
            json={"action": "approve"},
            headers=auth_headers(test_admin)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_archived_listing_cannot_be_approved(
        self, client: AsyncClient, pending_property, test_seller: User, test_admin: User
    ):
        archived = await client.delete(f"/properties/{pending_property.id}", headers=auth_headers(test_seller))
        assert archived.json()["status"] == "archived"

        response = await client.post(
            f"/admin/properties/{pending_property.id}/approval",
            json={"action": "approve"},
            headers=auth_headers(test_admin)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "Archived" in response.json()["error"]

        public = await client.get("/properties")
        assert public.json()["total"] == 0

    async def test_assign_agent(self, client: AsyncClient, public_property, test_agent: User, test_admin: User):
        response = await client.post(
            f"/admin/properties/{public_property.id}/assign-agent",
            json={"agent_id": str(test_agent.id)},
            headers=auth_headers(test_admin)
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["agent"]["id"] == str(test_agent.id)

    async def test_assign_missing_agent(self, client: AsyncClient, public_property, test_admin: User):
        response = await client.post(
            f"/admin/properties/{public_property.id}/assign-agent",
            json={"agent_id": str(uuid.uuid4())},
            headers=auth_headers(test_admin)
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["code"] == "USER_NOT_FOUND"

    async def test_bulk_archive(self, client: AsyncClient, property_repository, test_seller: User, test_admin: User):
        await PropertyFactory.create_property(property_repository, owner_id=test_seller.id, status=PropertyStatus.SOLD)
        await PropertyFactory.create_property(property_repository, owner_id=test_seller.id)

        response = await client.post(
            "/admin/properties/bulk-archive", json={"status": "sold"}, headers=auth_headers(test_admin)
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"status": "sold", "archived": 1}

    async def test_bulk_archive_archived_status_refused(self, client: AsyncClient, test_admin: User):
        response = await client.post(
            "/admin/properties/bulk-archive", json={"status": "archived"}, headers=auth_headers(test_admin)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_soft_delete_and_restore(self, client: AsyncClient, public_property, test_admin: User):
        deleted = await client.delete(f"/admin/properties/{public_property.id}", headers=auth_headers(test_admin))
        assert deleted.status_code == status.HTTP_200_OK
        assert deleted.json()["deleted_at"] is not None

        hidden = await client.get(f"/properties/{public_property.id}")
        assert hidden.status_code == status.HTTP_404_NOT_FOUND

        restored = await client.post(
            f"/admin/properties/{public_property.id}/restore", headers=auth_headers(test_admin)
        )
        assert restored.status_code == status.HTTP_200_OK
        assert restored.json()["deleted_at"] is None
        assert restored.json()["approval_status"] == ApprovalStatus.PENDING.value

    async def test_statistics(self, client: AsyncClient, public_property, pending_property, test_admin: User):
        response = await client.get("/admin/properties/statistics", headers=auth_headers(test_admin))

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total_properties"] == 2
        assert data["by_approval_status"] == {"approved": 1, "pending": 1}

    async def test_verify_user(self, client: AsyncClient, unverified_seller: User, test_admin: User):
        response = await client.post(
            f"/admin/users/{unverified_seller.id}/verify", headers=auth_headers(test_admin)
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["is_verified"] is True

        create = await client.post(
            "/properties", json=PropertyFactory.create_property_data(), headers=auth_headers(unverified_seller)
        )
        assert create.status_code == status.HTTP_201_CREATED

    async def test_error_log(self, client: AsyncClient, test_admin: User):
        await client.get("/auth/me")
        await client.get(f"/properties/{uuid.uuid4()}")

        response = await client.get("/admin/errors", headers=auth_headers(test_admin))

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total"] == 2
        assert [error["code"] for error in data["errors"]] == ["PROPERTY_NOT_FOUND", "AUTH_UNAUTHORIZED"]
        assert data["errors"][0]["recoverable"] is False


class TestHealthEndpoint:

    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "healthy"
