from collections import namedtuple

import pytest

from app import create_app, seed_categories
from config import TestConfig
from errors import BlobStoreError
from models import db, Category, User
from services.identity import issue_token

AuthUser = namedtuple('AuthUser', ['id', 'username', 'headers'])


class MemoryBlobStore:
    """Keeps blobs in a dict; ``fail_on=n`` makes the n-th store call fail."""

    def __init__(self, fail_on=None):
        self.blobs = {}
        self.calls = 0
        self.fail_on = fail_on

    def store(self, data, content_hint=''):
        self.calls += 1
        if self.fail_on is not None and self.calls == self.fail_on:
            raise BlobStoreError()
        url = f"/uploads/blob-{self.calls}.jpg"
        self.blobs[url] = data
        return url


@pytest.fixture
def app(tmp_path):
    class Config(TestConfig):
        UPLOAD_FOLDER = str(tmp_path / 'uploads')

    app = create_app(Config)
    with app.app_context():
        db.create_all()
        seed_categories()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def blob_store(app):
    store = MemoryBlobStore()
    app.extensions['blob_store'] = store
    return store


@pytest.fixture
def make_user(app):
    def make_user(username, role='user', status='active', password='secret123'):
        with app.app_context():
            user = User(
                username=username,
                email=f"{username}@example.com",
                first_name=username.title(),
                last_name='Tester',
                role=role,
                status=status,
            )
            user.set_password(password)
            db.session.add(user)
            db.session.commit()
            return AuthUser(user.id, username, {"Authorization": f"Bearer {issue_token(user)}"})
    return make_user


@pytest.fixture
def alice(make_user):
    return make_user('alice')


@pytest.fixture
def bob(make_user):
    return make_user('bob')


@pytest.fixture
def admin(make_user):
    return make_user('root', role='admin')


@pytest.fixture
def categories(app):
    """Seeded category ids by name."""
    with app.app_context():
        return {c.name: c.id for c in Category.query.all()}


@pytest.fixture
def create_recipe(client):
    def create_recipe(user, title='Paella Valenciana', ingredients=('arroz', 'azafrán'),
                      category_ids=None, difficulty='Media', prep_time=45, description=''):
        payload = {
            "title": title,
            "description": description,
            "prepTimeMinutes": prep_time,
            "difficulty": difficulty,
            "ingredients": list(ingredients),
        }
        if category_ids is not None:
            payload["categoryIds"] = list(category_ids)
        resp = client.post('/api/recipes', json=payload, headers=user.headers)
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()['recipeId']
    return create_recipe
