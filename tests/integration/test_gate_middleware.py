"""Integration tests for the edge request gate."""

from fastapi import Request


class TestGateMiddleware:
    """Test the gate running in front of every route."""

    def test_protected_page_redirects_to_signin(self, client):
        response = client.get("/dashboard", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/auth/signin"

    def test_protected_page_with_bad_token_redirects_with_error(self, client):
        response = client.get(
            "/dashboard",
            headers={"Authorization": "Bearer not-a-jwt"},
            follow_redirects=False,
        )

        assert response.status_code == 307
        assert response.headers["location"] == "/auth/signin?error=invalid_token"

    def test_api_without_token_rejected(self, client):
        response = client.get("/api/v1/auth/me")

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized", "message": "Authentication required"}

    def test_api_with_invalid_token_rejected(self, client):
        response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid or expired token"

    def test_forwarded_identity_replaces_spoofed_headers(self, client, signed_up, auth_headers):
        @client.app.get("/api/v1/whoami")
        async def whoami(request: Request):
            return {
                "userId": request.headers.get("x-user-id"),
                "email": request.headers.get("x-user-email"),
            }

        response = client.get(
            "/api/v1/whoami",
            headers={**auth_headers, "X-User-Id": "999", "X-User-Email": "evil@x.com"},
        )

        assert response.status_code == 200
        assert response.json() == {"userId": str(signed_up["user"]["id"]), "email": "a@x.com"}

    def test_spoofed_headers_stripped_on_public_routes(self, client):
        @client.app.get("/landing/echo")
        async def echo(request: Request):
            return {"userId": request.headers.get("x-user-id")}

        response = client.get("/landing/echo", headers={"X-User-Id": "999"})

        assert response.status_code == 200
        assert response.json() == {"userId": None}

    def test_security_headers(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
