"""Browser navigation guard and the server-rendered pages."""

import pytest

from conftest import login_as

from core.security import SESSION_COOKIE


class TestPageGuard:

    @pytest.mark.parametrize("path", ["/dashboard/admin", "/dashboard/worker", "/profile"])
    def test_anonymous_is_sent_to_login(self, client, path):
        resp = client.get(path, follow_redirects=False)
        assert resp.status_code == 307
        assert resp.headers["location"] == "/login?redirect=" + path.replace("/", "%2F")

    def test_invalid_cookie_is_sent_to_login(self, client):
        client.cookies.set(SESSION_COOKIE, "not-a-token")
        resp = client.get("/dashboard/client", follow_redirects=False)
        assert resp.status_code == 307
        assert resp.headers["location"].startswith("/login?redirect=")

    def test_wrong_role_goes_home(self, client, worker, customer):
        login_as(client, worker)
        resp = client.get("/dashboard/admin", follow_redirects=False)
        assert resp.status_code == 307
        assert resp.headers["location"] == "/"

        login_as(client, customer)
        assert client.get("/dashboard/worker", follow_redirects=False).headers["location"] == "/"

    def test_matching_role_gets_the_page(self, client, admin):
        login_as(client, admin)
        resp = client.get("/dashboard/admin")
        assert resp.status_code == 200
        assert "Admin dashboard" in resp.text
        assert admin.email in resp.text

    def test_any_session_may_open_profile(self, client, customer):
        login_as(client, customer)
        resp = client.get("/profile")
        assert resp.status_code == 200
        assert customer.email in resp.text

    def test_unknown_area(self, client, admin):
        login_as(client, admin)
        assert client.get("/dashboard/billing").status_code == 404

    def test_api_routes_are_not_redirected(self, client):
        assert client.get("/auth/me", follow_redirects=False).status_code == 401


class TestLoginPage:

    def test_keeps_local_redirect(self, client):
        resp = client.get("/login", params={"redirect": "/dashboard/worker"})
        assert resp.status_code == 200
        assert 'data-redirect="/dashboard/worker"' in resp.text

    def test_drops_offsite_redirect(self, client):
        resp = client.get("/login", params={"redirect": "//evil.example.com"})
        assert 'data-redirect="/"' in resp.text


def test_health(client):
    assert client.get("/health").json() == {"status": "ok", "database": "connected"}
