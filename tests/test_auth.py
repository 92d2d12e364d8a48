from conftest import PASSWORD, auth


def test_register_returns_user_and_token(client):
    response = client.post(
        "/api/auth/register",
        json={"name": "A", "email": "a@x.com", "password": "password1"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "User registered successfully"
    assert body["data"]["token"]
    user = body["data"]["user"]
    assert user["email"] == "a@x.com"
    assert user["role"] == "client"
    assert "password" not in user


def test_register_duplicate_email(client, client_user):
    response = client.post(
        "/api/auth/register",
        json={"name": "Again", "email": "ALICE@example.com", "password": PASSWORD},
    )
    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "User already exists with this email"}


def test_register_validation_errors(client):
    response = client.post(
        "/api/auth/register",
        json={"name": " ", "email": "nope", "password": "short"},
    )
    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Validation failed"
    fields = {error["field"] for error in body["error"]}
    assert {"name", "email", "password"} <= fields


def test_register_cannot_choose_admin_role(client):
    response = client.post(
        "/api/auth/register",
        json={"name": "Eve", "email": "eve@example.com", "password": PASSWORD, "role": "admin"},
    )
    assert response.status_code == 400


def test_login(client, client_user):
    response = client.post("/api/auth/login", json={"email": "alice@example.com", "password": PASSWORD})
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Login successful"
    assert body["data"]["user"]["id"] == client_user["user"]["id"]


def test_login_failures_are_indistinguishable(client, client_user):
    wrong_password = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "wrongpass1"})
    unknown_email = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": PASSWORD})
    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"success": False, "message": "Invalid credentials"}


def test_deactivated_account(client, db, client_user):
    with db.cursor() as cursor:
        cursor.execute("UPDATE users SET is_active = 0 WHERE id = ?", (client_user["user"]["id"],))

    login = client.post("/api/auth/login", json={"email": "alice@example.com", "password": PASSWORD})
    assert login.status_code == 401
    assert login.json()["message"] == "Invalid credentials"

    profile = client.get("/api/auth/profile", headers=client_user["headers"])
    assert profile.status_code == 401
    assert profile.json()["message"] == "User account is deactivated"


def test_profile_requires_token(client):
    response = client.get("/api/auth/profile")
    assert response.status_code == 401
    assert response.json()["message"] == "Not authorized, no token"
    assert response.headers["www-authenticate"] == "Bearer"

    response = client.get("/api/auth/profile", headers=auth("not.a.token"))
    assert response.status_code == 401
    assert response.json()["message"] == "Not authorized, token failed"


def test_token_of_deleted_user(client, db, client_user):
    with db.cursor() as cursor:
        cursor.execute("DELETE FROM users WHERE id = ?", (client_user["user"]["id"],))
    response = client.get("/api/auth/profile", headers=client_user["headers"])
    assert response.status_code == 401
    assert response.json()["message"] == "User no longer exists"


def test_get_profiles(client, client_user, other_client):
    own = client.get("/api/auth/profile", headers=client_user["headers"])
    assert own.status_code == 200
    assert own.json()["data"]["email"] == "alice@example.com"

    other = client.get(f"/api/auth/profile/{other_client['user']['id']}", headers=client_user["headers"])
    assert other.status_code == 200
    assert other.json()["data"]["name"] == "Bob Client"

    missing = client.get("/api/auth/profile/9999", headers=client_user["headers"])
    assert missing.status_code == 404


def test_update_own_profile_only(client, client_user, other_client):
    user_id = client_user["user"]["id"]
    response = client.put(
        f"/api/auth/profile/{user_id}",
        json={"name": "Alice Updated", "address": "1 Main St", "profileImage": "alice.png"},
        headers=client_user["headers"],
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Alice Updated"
    assert data["address"] == "1 Main St"
    assert data["profile_image"] == "alice.png"

    forbidden = client.put(f"/api/auth/profile/{user_id}", json={"name": "Hacked"}, headers=other_client["headers"])
    assert forbidden.status_code == 403


def test_profile_update_rejects_null_name_and_blank_phone(client, client_user):
    url = f"/api/auth/profile/{client_user['user']['id']}"
    headers = client_user["headers"]

    null_name = client.put(url, json={"name": None}, headers=headers)
    assert null_name.status_code == 400
    assert null_name.json()["message"] == "Validation failed"

    blank_phone = client.put(url, json={"phone": "   "}, headers=headers)
    assert blank_phone.status_code == 200
    assert blank_phone.json()["data"]["phone"] is None
    assert blank_phone.json()["data"]["name"] == "Alice Client"

    padded = client.put(url, json={"phone": " +1 555 123 4567 "}, headers=headers)
    assert padded.status_code == 200
    assert padded.json()["data"]["phone"] == "+1 555 123 4567"


def test_change_password(client, client_user):
    wrong = client.post(
        "/api/auth/change-password",
        json={"currentPassword": "wrongpass1", "newPassword": "newpassword1"},
        headers=client_user["headers"],
    )
    assert wrong.status_code == 401
    assert wrong.json()["message"] == "Current password is incorrect"

    ok = client.post(
        "/api/auth/change-password",
        json={"currentPassword": PASSWORD, "newPassword": "newpassword1"},
        headers=client_user["headers"],
    )
    assert ok.status_code == 200

    login = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "newpassword1"})
    assert login.status_code == 200


def test_forgot_password_unknown_email(client):
    response = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})
    assert response.status_code == 404
    assert response.json()["message"] == "No user found with this email"


def test_password_reset_flow(client, client_user):
    forgot = client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
    assert forgot.status_code == 200
    token = forgot.json()["data"]["resetToken"]

    reset = client.post("/api/auth/reset-password", json={"token": token, "newPassword": "resetpass1"})
    assert reset.status_code == 200
    assert reset.json()["message"] == "Password reset successful"

    assert client.post("/api/auth/login", json={"email": "alice@example.com", "password": "resetpass1"}).status_code == 200
    assert client.post("/api/auth/login", json={"email": "alice@example.com", "password": PASSWORD}).status_code == 401

    reused = client.post("/api/auth/reset-password", json={"token": token, "newPassword": "another1"})
    assert reused.status_code == 400
    assert reused.json()["message"] == "Invalid or expired token"


def test_expired_reset_token(client, db, client_user):
    token = client.post("/api/auth/forgot-password", json={"email": "alice@example.com"}).json()["data"]["resetToken"]
    with db.cursor() as cursor:
        cursor.execute("UPDATE password_resets SET expires_at = datetime('now', '-1 minutes')")
    response = client.post("/api/auth/reset-password", json={"token": token, "newPassword": "resetpass1"})
    assert response.status_code == 400


def test_misc_routes(client):
    root = client.get("/")
    assert root.status_code == 200
    assert root.json()["status"] == "running"

    health = client.get("/api/health")
    assert health.status_code == 200
    assert health.json()["status"] == "ok"

    missing = client.get("/api/nope")
    assert missing.status_code == 404
    assert missing.json() == {"success": False, "message": "Route not found"}


def test_every_domain_router_is_mounted(app):
    from legal_eye_api.app.api.v1.endpoints import auth, bookings, lawyers, legal_info, reviews

    assert all(module.router.routes for module in (auth, bookings, lawyers, legal_info, reviews))
    paths = {route.path for route in app.routes}
    for prefix in ("/api/auth", "/api/lawyers", "/api/bookings", "/api/reviews", "/api/legal-info"):
        assert any(path.startswith(prefix) for path in paths), prefix
