"""API endpoint tests."""


def test_health_check(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_register_user(client):
    """Test user registration."""
    response = client.post(
        "/api/v1/auth/register",
        json={"email": "newuser@example.com", "password": "password123", "name": "New User"},
    )
    assert response.status_code == 201
    assert "access_token" in response.json()


def test_register_duplicate_email(client, auth_headers):
    """Test registration with duplicate email fails."""
    response = client.post(
        "/api/v1/auth/register",
        json={"email": auth_headers.email, "password": "password123", "name": "Duplicate"},
    )
    assert response.status_code == 409
    error = response.json()["error"]
    assert error["code"] == "CONFLICT"
    assert "already registered" in error["message"]


def test_register_email_is_case_insensitive(client, auth_headers):
    response = client.post(
        "/api/v1/auth/register",
        json={"email": "TEST@example.com", "password": "password123"},
    )
    assert response.status_code == 409


def test_login(client, auth_headers):
    """Test user login."""
    response = client.post(
        "/api/v1/auth/login", json={"email": auth_headers.email, "password": "testpass123"}
    )
    assert response.status_code == 200
    assert "access_token" in response.json()


def test_login_wrong_password(client, auth_headers):
    """Test login with wrong password."""
    response = client.post(
        "/api/v1/auth/login", json={"email": auth_headers.email, "password": "wrongpass"}
    )
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"
    assert response.headers["www-authenticate"] == "Bearer"


def test_get_current_user(client, auth_headers):
    """Test getting current user info."""
    response = client.get("/api/v1/auth/me", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["email"] == auth_headers.email


def test_unauthorized_access(client):
    """Test that endpoints require authentication."""
    response = client.get("/api/v1/recipes")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


def test_invalid_token_rejected(client):
    response = client.post(
        "/api/v1/imports",
        headers={"Authorization": "Bearer not-a-token"},
        json={"kind": "locator", "content": "https://recipes.example.com/carbonara"},
    )
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


def test_auth_response_includes_user(client):
    """Test that auth responses include user info."""
    response = client.post(
        "/api/v1/auth/register",
        json={"email": "usertest@example.com", "password": "password123", "name": "User Test"},
    )
    assert response.status_code == 201
    data = response.json()
    assert "access_token" in data
    assert "user" in data
    assert data["user"]["email"] == "usertest@example.com"
    assert data["user"]["name"] == "User Test"


def test_malformed_request_uses_error_envelope(client, auth_headers):
    """Body validation errors are reported as INVALID_REQUEST with field details."""
    response = client.post("/api/v1/imports", headers=auth_headers, json={"kind": "locator"})
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "INVALID_REQUEST"
    assert any(detail["field"].endswith("content") for detail in error["details"])
