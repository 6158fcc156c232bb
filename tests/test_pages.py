import pytest

from models import Role


@pytest.mark.parametrize("path", ["/donor", "/business", "/ch", "/admin"])
def test_role_pages_send_anonymous_visitors_to_login(client, path):
    resp = client.get(path, follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers["location"] == "/login"


@pytest.mark.parametrize("role, dashboard", [
    (Role.donor, "/donor"),
    (Role.business, "/business"),
    (Role.main_admin, "/admin"),
])
def test_logged_in_users_are_sent_away_from_login(client, make_user, login_as, role, dashboard):
    user_client = login_as(make_user(role))
    for path in ("/login", "/register", "/"):
        resp = user_client.get(path, follow_redirects=False)
        assert resp.status_code == 303
        assert resp.headers["location"] == dashboard


def test_wrong_role_goes_to_access_denied(client, make_user, login_as):
    donor = login_as(make_user(Role.donor))
    resp = donor.get("/admin", follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers["location"] == "/access-denied"

    denied = donor.get("/access-denied")
    assert denied.status_code == 403


def test_dashboard_renders_for_matching_role(client, make_user, login_as):
    user = make_user(Role.business, name="Tata Textiles")
    resp = login_as(user).get("/business")
    assert resp.status_code == 200
    assert "Tata Textiles" in resp.text


def test_login_page_renders_for_anonymous_visitor(client):
    resp = client.get("/login")
    assert resp.status_code == 200
    assert 'name="phone"' in resp.text
