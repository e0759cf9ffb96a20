"""Tests for admin user management."""

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from docmarket.models.password_reset import PasswordResetToken
from docmarket.models.user import User


class TestAccessControl:
    """Admin routes reject anonymous and non-admin callers."""

    def test_anonymous_is_unauthenticated(self, client: TestClient):
        response = client.get("/api/users")
        assert response.status_code == 401

    def test_regular_user_is_forbidden(self, client: TestClient, test_user: dict):
        for method, path in (
            ("GET", "/api/users"),
            ("GET", f"/api/users/{test_user['user_id']}"),
            ("POST", "/api/users"),
            ("PUT", f"/api/users/{test_user['user_id']}"),
            ("DELETE", f"/api/users/{test_user['user_id']}"),
        ):
            response = client.request(method, path, headers=test_user["headers"], json={})
            assert response.status_code == 403, (method, path)
            assert response.json() == {"detail": "Admin access required", "error": "Forbidden"}

    def test_demoted_admin_loses_access(self, client: TestClient, db_session: Session, admin_user: dict):
        admin = db_session.get(User, admin_user["user_id"])
        admin.role = "user"
        db_session.commit()

        response = client.get("/api/users", headers=admin_user["headers"])
        assert response.status_code == 403


class TestListAndGet:
    """Tests for listing and reading users."""

    def test_list_users_newest_first(self, client: TestClient, admin_user: dict, test_user: dict):
        response = client.get("/api/users", headers=admin_user["headers"])
        assert response.status_code == 200
        emails = [u["email"] for u in response.json()["users"]]
        assert emails == ["test@example.com", "admin@example.com"]

    def test_list_users_search(self, client: TestClient, admin_user: dict, test_user: dict):
        response = client.get("/api/users", params={"search": "TEST@"}, headers=admin_user["headers"])
        assert [u["email"] for u in response.json()["users"]] == ["test@example.com"]

    def test_get_user(self, client: TestClient, admin_user: dict, test_user: dict):
        response = client.get(f"/api/users/{test_user['user_id']}", headers=admin_user["headers"])
        assert response.status_code == 200
        assert response.json()["user"]["email"] == "test@example.com"
        assert "password_hash" not in response.json()["user"]

    def test_get_missing_user(self, client: TestClient, admin_user: dict):
        response = client.get("/api/users/9999", headers=admin_user["headers"])
        assert response.status_code == 404
        assert response.json() == {"detail": "User not found", "error": "NotFound"}


class TestCreate:
    """Tests for admin user creation."""

    def test_create_admin(self, client: TestClient, admin_user: dict):
        response = client.post(
            "/api/users",
            json={"email": "second@example.com", "password": "secret123", "role": "admin"},
            headers=admin_user["headers"],
        )
        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "User created successfully"
        assert data["user"]["role"] == "admin"

        login = client.post("/api/users/login", json={"email": "second@example.com", "password": "secret123"})
        assert login.status_code == 200

    def test_create_defaults_to_user_role(self, client: TestClient, admin_user: dict):
        response = client.post(
            "/api/users",
            json={"email": "plain@example.com", "password": "secret123"},
            headers=admin_user["headers"],
        )
        assert response.json()["user"]["role"] == "user"

    def test_create_rejects_unknown_role(self, client: TestClient, admin_user: dict):
        response = client.post(
            "/api/users",
            json={"email": "root@example.com", "password": "secret123", "role": "root"},
            headers=admin_user["headers"],
        )
        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"

    def test_create_duplicate(self, client: TestClient, admin_user: dict, test_user: dict):
        response = client.post(
            "/api/users",
            json={"email": "test@example.com", "password": "secret123"},
            headers=admin_user["headers"],
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Conflict"


class TestUpdate:
    """Tests for partial user updates."""

    def test_update_role_and_phone(self, client: TestClient, admin_user: dict, test_user: dict):
        response = client.put(
            f"/api/users/{test_user['user_id']}",
            json={"role": "admin", "phone": "555-9999"},
            headers=admin_user["headers"],
        )
        assert response.status_code == 200
        user = response.json()["user"]
        assert user["role"] == "admin"
        assert user["phone"] == "555-9999"
        assert user["email"] == "test@example.com"

    def test_explicit_null_clears_phone(self, client: TestClient, admin_user: dict, test_user: dict):
        response = client.put(
            f"/api/users/{test_user['user_id']}",
            json={"phone": None},
            headers=admin_user["headers"],
        )
        assert response.status_code == 200
        assert response.json()["user"]["phone"] is None

    def test_update_password(self, client: TestClient, admin_user: dict, test_user: dict):
        client.put(
            f"/api/users/{test_user['user_id']}",
            json={"password": "changed123"},
            headers=admin_user["headers"],
        )
        login = client.post("/api/users/login", json={"email": "test@example.com", "password": "changed123"})
        assert login.status_code == 200

    def test_update_without_fields(self, client: TestClient, admin_user: dict, test_user: dict):
        response = client.put(f"/api/users/{test_user['user_id']}", json={}, headers=admin_user["headers"])
        assert response.status_code == 400
        assert response.json() == {"detail": "No fields to update", "error": "ValidationError"}

    def test_update_email_taken(self, client: TestClient, admin_user: dict, test_user: dict):
        response = client.put(
            f"/api/users/{test_user['user_id']}",
            json={"email": "admin@example.com"},
            headers=admin_user["headers"],
        )
        assert response.status_code == 400
        assert response.json() == {"detail": "Email is already in use", "error": "Conflict"}

    def test_update_missing_user(self, client: TestClient, admin_user: dict):
        response = client.put("/api/users/9999", json={"role": "admin"}, headers=admin_user["headers"])
        assert response.status_code == 404


class TestDelete:
    """Tests for user deletion."""

    def test_delete_user_removes_reset_tokens(
        self, client: TestClient, db_session: Session, admin_user: dict, test_user: dict
    ):
        client.post("/api/users/request-reset", json={"email": "test@example.com"})
        assert db_session.query(PasswordResetToken).count() == 1

        response = client.delete(f"/api/users/{test_user['user_id']}", headers=admin_user["headers"])
        assert response.status_code == 200
        assert response.json() == {"message": "User deleted successfully"}
        assert db_session.get(User, test_user["user_id"]) is None
        assert db_session.query(PasswordResetToken).count() == 0

        response = client.get(f"/api/users/{test_user['user_id']}", headers=admin_user["headers"])
        assert response.status_code == 404

    def test_deleted_user_token_is_rejected(self, client: TestClient, admin_user: dict, test_user: dict):
        client.delete(f"/api/users/{test_user['user_id']}", headers=admin_user["headers"])
        response = client.get("/api/users/profile", headers=test_user["headers"])
        assert response.status_code == 401
