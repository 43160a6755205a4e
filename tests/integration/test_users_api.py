"""
Integration tests for profiles, passwords and account administration.
"""

from pathlib import Path

from core.security import verify_password
from models.user import User


class TestProfile:
    def test_get_own_profile(self, client, member, auth_headers):
        response = client.get("/api/users/profile", headers=auth_headers(member))

        assert response.status_code == 200
        body = response.json()
        assert body["username"] == "alice"
        assert body["email"] == "alice@example.com"
        assert "password_hash" not in body

    def test_update_bio_and_email(self, client, member, auth_headers):
        # Prime the cached profile first
        client.get("/api/users/profile", headers=auth_headers(member))

        response = client.put(
            "/api/users/profile",
            data={"email": "alice@new.example.com", "bio": "Likes jazz"},
            headers=auth_headers(member),
        )

        assert response.status_code == 200
        assert response.json()["bio"] == "Likes jazz"
        refreshed = client.get("/api/users/profile", headers=auth_headers(member)).json()
        assert refreshed["email"] == "alice@new.example.com"

    def test_upload_profile_picture(self, client, member, auth_headers, png_bytes):
        response = client.put(
            "/api/users/profile",
            files={"profile_picture": ("me.png", png_bytes, "image/png")},
            headers=auth_headers(member),
        )

        assert response.status_code == 200
        assert response.json()["profile_picture"].startswith("/uploads/profile-images/")

    def test_email_taken_by_another_account(self, client, member, make_user, auth_headers):
        make_user("bob")
        response = client.put(
            "/api/users/profile",
            data={"email": "bob@example.com"},
            headers=auth_headers(member),
        )

        assert response.status_code == 409
        assert response.json()["error"] == "Email already registered"

    def test_rejected_update_leaves_no_upload(self, client, member, make_user, auth_headers, png_bytes, settings):
        make_user("bob")
        response = client.put(
            "/api/users/profile",
            data={"email": "bob@example.com"},
            files={"profile_picture": ("me.png", png_bytes, "image/png")},
            headers=auth_headers(member),
        )

        assert response.status_code == 409
        assert [p for p in Path(settings.UPLOAD_DIR).rglob("*") if p.is_file()] == []

    def test_invalid_email_rejected_before_upload(self, client, member, auth_headers, png_bytes, settings):
        response = client.put(
            "/api/users/profile",
            data={"email": "not-an-email"},
            files={"profile_picture": ("me.png", png_bytes, "image/png")},
            headers=auth_headers(member),
        )

        assert response.status_code == 400
        assert response.json()["error"].startswith("email:")
        assert [p for p in Path(settings.UPLOAD_DIR).rglob("*") if p.is_file()] == []

    def test_nothing_to_update(self, client, member, auth_headers):
        response = client.put("/api/users/profile", data={}, headers=auth_headers(member))
        assert response.status_code == 400


class TestPassword:
    def test_change_password(self, client, db, member, auth_headers, settings):
        response = client.put(
            "/api/users/password",
            json={"currentPassword": "secret123", "newPassword": "brand-new-pass"},
            headers=auth_headers(member),
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Password updated successfully"
        db.expire_all()
        stored = db.get(User, member.user_id)
        assert verify_password("brand-new-pass", stored.password_hash, settings)

        login = client.post("/api/auth/login", json={"username": "alice", "password": "brand-new-pass"})
        assert login.status_code == 200

    def test_wrong_current_password(self, client, member, auth_headers):
        response = client.put(
            "/api/users/password",
            json={"currentPassword": "wrong", "newPassword": "brand-new-pass"},
            headers=auth_headers(member),
        )
        assert response.status_code == 401

    def test_new_password_too_short(self, client, member, auth_headers):
        response = client.put(
            "/api/users/password",
            json={"currentPassword": "secret123", "newPassword": "abc"},
            headers=auth_headers(member),
        )
        assert response.status_code == 400


class TestActivities:
    def test_feed_lists_created_events_and_reviews(self, client, admin, auth_headers, make_event, make_review):
        event = make_event("Jazz night")
        make_review(event, admin, rating=5)

        response = client.get("/api/users/activities", headers=auth_headers(admin))

        assert response.status_code == 200
        kinds = {a["activity_type"] for a in response.json()}
        assert kinds == {"event_created", "review_submitted"}
        assert all(a["name"] == "Jazz night" for a in response.json())


class TestAdministration:
    def test_list_users_with_search(self, client, admin, member, make_user, auth_headers):
        make_user("bob")

        response = client.get("/api/users", params={"search": "ali"}, headers=auth_headers(admin))

        assert response.status_code == 200
        assert [u["username"] for u in response.json()] == ["alice"]
        assert response.headers["X-Total-Count"] == "1"

    def test_list_users_by_role(self, client, admin, member, auth_headers):
        response = client.get("/api/users", params={"role": "admin"}, headers=auth_headers(admin))
        assert [u["username"] for u in response.json()] == ["admin"]

    def test_promote_user(self, client, admin, member, auth_headers):
        response = client.put(
            f"/api/users/{member.user_id}/role",
            json={"role": "admin"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        assert response.json()["role"] == "admin"

    def test_admin_cannot_demote_self(self, client, admin, auth_headers):
        response = client.put(
            f"/api/users/{admin.user_id}/role",
            json={"role": "user"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 403
        assert response.json()["error"] == "Administrators cannot demote themselves"

    def test_unknown_role_rejected(self, client, admin, member, auth_headers):
        response = client.put(
            f"/api/users/{member.user_id}/role",
            json={"role": "superuser"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 400

    def test_unknown_user(self, client, admin, auth_headers):
        response = client.put("/api/users/999/role", json={"role": "admin"}, headers=auth_headers(admin))
        assert response.status_code == 404

    def test_member_cannot_change_roles(self, client, member, auth_headers):
        response = client.put(
            f"/api/users/{member.user_id}/role",
            json={"role": "admin"},
            headers=auth_headers(member),
        )
        assert response.status_code == 403
