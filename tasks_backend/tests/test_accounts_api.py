from src.api.models import Identity

PASSWORD = "correct horse battery staple"


class TestRegister:
    def test_register_success(self, client, app):
        res = client.post("/register", json={"email": "ada@example.com", "password": PASSWORD})
        assert res.status_code == 200
        assert res.json() == {"message": "User registered"}

        stored = app.state.stores.users.get_by_email("ada@example.com")
        assert stored is not None
        assert stored["image"] == ""
        # Only the digest is stored
        assert stored["password_hash"] != PASSWORD
        assert PASSWORD not in stored["password_hash"]

    def test_register_twice_conflicts(self, client):
        payload = {"email": "ada@example.com", "password": PASSWORD}
        assert client.post("/register", json=payload).status_code == 200

        res = client.post("/register", json={**payload, "password": "something else"})
        assert res.status_code == 409
        assert res.json() == {"error": "User exists"}

    def test_email_is_case_sensitive(self, client):
        assert client.post("/register", json={"email": "ada@example.com", "password": PASSWORD}).status_code == 200
        assert client.post("/register", json={"email": "Ada@example.com", "password": PASSWORD}).status_code == 200

    def test_missing_fields(self, client):
        for body in ({}, {"email": "ada@example.com"}, {"password": PASSWORD}, {"email": "  ", "password": PASSWORD}):
            res = client.post("/register", json=body)
            assert res.status_code == 400
            assert res.json() == {"error": "Email and password required"}

    def test_wrong_types(self, client):
        res = client.post("/register", json={"email": 123, "password": PASSWORD})
        assert res.status_code == 400
        body = res.json()
        assert list(body) == ["error"]
        assert body["error"].startswith("email:")


class TestLogin:
    def test_login_returns_verifiable_token(self, client, app):
        client.post("/register", json={"email": "ada@example.com", "password": PASSWORD})
        res = client.post("/login", json={"email": "ada@example.com", "password": PASSWORD})
        assert res.status_code == 200
        token = res.json()["token"]

        user = app.state.stores.users.get_by_email("ada@example.com")
        assert app.state.token_service.verify(token) == Identity(id=user["id"], email="ada@example.com")

    def test_wrong_password(self, client):
        client.post("/register", json={"email": "ada@example.com", "password": PASSWORD})
        res = client.post("/login", json={"email": "ada@example.com", "password": "nope"})
        assert res.status_code == 401
        assert res.json() == {"error": "Invalid credentials"}

    def test_unknown_email_does_not_register(self, client, app):
        res = client.post("/login", json={"email": "ghost@example.com", "password": PASSWORD})
        assert res.status_code == 401
        assert res.json() == {"error": "Invalid credentials"}
        assert app.state.stores.users.get_by_email("ghost@example.com") is None

    def test_missing_fields(self, client):
        res = client.post("/login", json={"email": "ada@example.com"})
        assert res.status_code == 400
        assert res.json() == {"error": "Email and password required"}
