"""Profile endpoints."""

import os

from conftest import png_file


def test_get_profile(client, alice, bearer):
    resp = client.get("/api/v1/users/profile", headers=bearer(alice["access_token"]))
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["email"] == "alice@example.com"
    assert data["date_of_birth"] == "1990-05-17"


def test_update_profile_fields(client, alice, bearer):
    resp = client.patch(
        "/api/v1/users/profile",
        json={"first_name": " Alicia ", "preferences": ["art"]},
        headers=bearer(alice["access_token"]),
    )
    assert resp.status_code == 200
    user = resp.get_json()["data"]["user"]
    assert user["first_name"] == "Alicia"
    assert user["last_name"] == "Walker"
    assert user["preferences"] == ["art"]


def test_update_profile_rejects_unknown_preference(client, alice, bearer):
    resp = client.put(
        "/api/v1/users/profile",
        json={"preferences": ["knitting"]},
        headers=bearer(alice["access_token"]),
    )
    assert resp.status_code == 422


def test_update_profile_email_conflict(client, alice, bob, bearer):
    resp = client.patch(
        "/api/v1/users/profile",
        json={"email": "bob@example.com"},
        headers=bearer(alice["access_token"]),
    )
    assert resp.status_code == 409


def test_update_profile_keeps_own_email(client, alice, bearer):
    resp = client.patch(
        "/api/v1/users/profile",
        json={"email": "alice@example.com", "phone": "5551234567"},
        headers=bearer(alice["access_token"]),
    )
    assert resp.status_code == 200


def test_password_change_requires_current_password(client, alice, bearer):
    resp = client.patch(
        "/api/v1/users/profile",
        json={"current_password": "wrong-password", "new_password": "brand-new-pass"},
        headers=bearer(alice["access_token"]),
    )
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Current password is incorrect"


def test_password_change_needs_both_fields(client, alice, bearer):
    resp = client.patch(
        "/api/v1/users/profile",
        json={"new_password": "brand-new-pass"},
        headers=bearer(alice["access_token"]),
    )
    assert resp.status_code == 422


def test_password_change_ends_session(client, alice, bearer):
    resp = client.patch(
        "/api/v1/users/profile",
        json={"current_password": "correct-horse", "new_password": "brand-new-pass"},
        headers=bearer(alice["access_token"]),
    )
    assert resp.status_code == 200

    stale = client.post("/api/v1/auth/refresh", json={"refresh_token": alice["refresh_token"]})
    assert stale.status_code == 401

    old = client.post("/api/v1/auth/login", json={"identifier": "alice@example.com", "password": "correct-horse"})
    assert old.status_code == 401
    new = client.post("/api/v1/auth/login", json={"identifier": "alice@example.com", "password": "brand-new-pass"})
    assert new.status_code == 200


def test_profile_image_is_replaced(client, alice, bearer, upload_folder):
    headers = bearer(alice["access_token"])
    first = client.patch(
        "/api/v1/users/profile", data={"image": png_file()}, headers=headers, content_type="multipart/form-data"
    ).get_json()["data"]["user"]["image"]
    second = client.patch(
        "/api/v1/users/profile", data={"image": png_file()}, headers=headers, content_type="multipart/form-data"
    ).get_json()["data"]["user"]["image"]

    assert first != second
    assert not os.path.exists(os.path.join(upload_folder, first.rsplit("/", 1)[1]))
    assert os.path.exists(os.path.join(upload_folder, second.rsplit("/", 1)[1]))


def test_public_profile_hides_contact_details(client, alice, bob, bearer):
    resp = client.get(f"/api/v1/users/{bob['user']['id']}", headers=bearer(alice["access_token"]))
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["first_name"] == "Bob"
    assert "email" not in data
    assert "phone" not in data


def test_unknown_user(client, alice, bearer):
    resp = client.get("/api/v1/users/does-not-exist", headers=bearer(alice["access_token"]))
    assert resp.status_code == 404
    assert resp.get_json()["message"] == "User not found"


def test_user_articles(client, alice, bob, bearer):
    headers = bearer(bob["access_token"])
    for title in ("First", "Second"):
        resp = client.post(
            "/api/v1/articles",
            data={"title": title, "description": "body", "category": "travel", "image": png_file()},
            headers=headers,
            content_type="multipart/form-data",
        )
        assert resp.status_code == 201

    resp = client.get(f"/api/v1/users/{bob['user']['id']}/articles", headers=bearer(alice["access_token"]))
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["meta"]["total"] == 2
    assert {a["title"] for a in body["data"]} == {"First", "Second"}
    assert all(a["author"]["id"] == bob["user"]["id"] for a in body["data"])
