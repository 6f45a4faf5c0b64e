import io

from models import db, User

REGISTRATION = {
    "username": "chef.ana",
    "email": "ana@example.com",
    "password": "secreto1",
    "firstname": "Ana",
    "lastname": "García",
}


def register(client, **overrides):
    return client.post('/api/auth/register', json={**REGISTRATION, **overrides})


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def test_ping(client):
    resp = client.get('/ping')
    assert resp.status_code == 200
    assert resp.data == b"pong"


def test_register_returns_a_working_token(client):
    resp = register(client)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["user"]["username"] == "chef.ana"
    assert body["user"]["email"] == "ana@example.com"
    assert body["user"]["role"] == "user"
    assert "password_hash" not in body["user"]

    me = client.get('/api/auth/whoami', headers=bearer(body["token"]))
    assert me.status_code == 200
    assert me.get_json()["id"] == body["user"]["id"]


def test_register_validation(client):
    assert register(client, username="").get_json()["field"] == "username"
    assert register(client, username="ab").status_code == 400
    assert register(client, username="ana garcía").status_code == 400
    assert register(client, email="not-an-email").get_json()["field"] == "email"
    assert register(client, password="123").get_json()["field"] == "password"
    assert register(client, lastname="  ").get_json()["field"] == "lastname"


def test_register_duplicates_conflict(client, app):
    assert register(client).status_code == 201

    resp = register(client, email="other@example.com")
    assert resp.status_code == 409
    assert resp.get_json()["code"] == "conflict"
    assert register(client, username="otra").status_code == 409

    with app.app_context():
        assert db.session.query(User).count() == 1


def test_register_with_avatar(client, blob_store):
    data = {**REGISTRATION, "avatarFile": (io.BytesIO(b'avatar'), 'me.png')}
    resp = client.post('/api/auth/register', data=data, content_type='multipart/form-data')

    assert resp.status_code == 201
    assert resp.get_json()["user"]["avatar"] == "/uploads/blob-1.jpg"


def test_login_with_email_or_username(client):
    register(client)

    by_email = client.post('/api/auth/login', json={"email": "ana@example.com", "password": "secreto1"})
    assert by_email.status_code == 200
    assert by_email.get_json()["user"]["username"] == "chef.ana"

    by_username = client.post('/api/auth/login', json={"username": "chef.ana", "password": "secreto1"})
    assert by_username.status_code == 200
    assert client.get('/api/auth/whoami', headers=bearer(by_username.get_json()["token"])).status_code == 200


def test_login_failures(client, make_user):
    register(client)
    make_user('mallory', status='banned', password='hunter22')

    assert client.post('/api/auth/login', json={"email": "ana@example.com", "password": "wrong"}).status_code == 401
    assert client.post('/api/auth/login', json={"email": "nobody@example.com", "password": "x"}).status_code == 401
    assert client.post('/api/auth/login', json={"email": "ana@example.com"}).status_code == 400

    resp = client.post('/api/auth/login', json={"username": "mallory", "password": "hunter22"})
    assert resp.status_code == 403


def test_token_role_claim_makes_admins(client, admin, alice, create_recipe):
    recipe_id = create_recipe(alice)
    assert client.delete(f'/api/recipes/{recipe_id}', headers=admin.headers).status_code == 200


def test_whoami_requires_a_valid_token(client):
    assert client.get('/api/auth/whoami').status_code == 401
    resp = client.get('/api/auth/whoami', headers=bearer("garbage"))
    assert resp.status_code == 401
    assert resp.get_json()["code"] == "authentication_required"


def test_token_for_deleted_account(client, app, alice):
    with app.app_context():
        db.session.delete(db.session.get(User, alice.id))
        db.session.commit()

    assert client.get('/api/auth/whoami', headers=alice.headers).status_code == 401


def test_check_username(client, alice):
    def available(username, headers=None):
        resp = client.get('/api/user/check-username', query_string={"username": username}, headers=headers)
        return resp.get_json()["available"]

    assert available("alice") is False
    assert available("nuevo") is True
    # Your own name is still available to you
    assert available("alice", headers=alice.headers) is True
    assert available("alice", headers=bearer("garbage")) is False
    assert client.get('/api/user/check-username').status_code == 400


def test_update_profile(client, alice, bob):
    resp = client.put('/api/user/profile', json={"bio": "Cocinera", "firstname": "Alicia"}, headers=alice.headers)
    assert resp.status_code == 200
    user = resp.get_json()["user"]
    assert user["bio"] == "Cocinera"
    assert user["firstname"] == "Alicia"
    assert user["username"] == "alice"

    assert client.put('/api/user/profile', json={"username": "bob"}, headers=alice.headers).status_code == 409
    assert client.put('/api/user/profile', json={"firstname": " "}, headers=alice.headers).status_code == 400

    resp = client.put('/api/user/profile', json={"username": "alice.cocina"}, headers=alice.headers)
    assert resp.get_json()["user"]["username"] == "alice.cocina"
    assert client.get('/api/users/alice.cocina').status_code == 200
    assert client.put('/api/user/profile', json={"bio": "x"}).status_code == 401


def test_update_and_remove_avatar(client, alice, blob_store):
    resp = client.put('/api/user/profile', data={"avatarFile": (io.BytesIO(b'img'), 'a.jpg')},
                      headers=alice.headers, content_type='multipart/form-data')
    assert resp.get_json()["user"]["avatar"] == "/uploads/blob-1.jpg"

    resp = client.put('/api/user/profile', data={"removeAvatar": "true"},
                      headers=alice.headers, content_type='multipart/form-data')
    assert resp.get_json()["user"]["avatar"] is None


def test_unknown_route_is_json(client):
    resp = client.get('/api/nothing-here')
    assert resp.status_code == 404
    assert resp.get_json()["code"] == "not_found"
