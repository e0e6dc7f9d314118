"""
Tests for login, logout and the access decorators.
"""

from urllib.parse import urlparse


def location(response):
    return urlparse(response.headers["Location"]).path


def test_login_page_renders(client):
    response = client.get("/login")
    assert response.status_code == 200
    assert b"<h1>Login</h1>" in response.data


def test_login_with_correct_credentials_stores_identity(client, admin_id):
    response = client.post("/login", data={"username": "admin", "password": "admin123"})

    assert response.status_code == 302
    assert location(response) == "/"
    with client.session_transaction() as sess:
        assert sess["user"] == {"user_id": admin_id, "name": "admin", "nickname": "Admin", "is_admin": True}


def test_login_with_wrong_password_rerenders_form(client, admin_id):
    response = client.post("/login", data={"username": "admin", "password": "wrong"})

    assert response.status_code == 200
    assert b"Invalid credentials." in response.data
    with client.session_transaction() as sess:
        assert "user" not in sess


def test_login_with_empty_fields_fails(client, admin_id):
    response = client.post("/login", data={"username": "admin", "password": ""})
    assert response.status_code == 200
    with client.session_transaction() as sess:
        assert "user" not in sess


def test_authenticated_user_is_redirected_from_login(admin_client):
    response = admin_client.get("/login")
    assert response.status_code == 302
    assert location(response) == "/"


def test_logout_clears_session(admin_client):
    response = admin_client.get("/logout")

    assert location(response) == "/login"
    with admin_client.session_transaction() as sess:
        assert "user" not in sess


def test_login_required_redirects_anonymous(client):
    response = client.get("/sessions")
    assert response.status_code == 302
    assert location(response) == "/login"


def test_admin_required_rejects_regular_user(client, database, login_as):
    session_id = database.create_session("Workshop", "Saturday")
    login_as(database.create_user(session_id, "sam", "Sam", "pw"))

    response = client.get("/categories")

    assert response.status_code == 302
    assert location(response) == "/login"
