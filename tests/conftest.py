import pytest

from app import create_app
from config import TestConfig
from models import db


@pytest.fixture
def app():
    return create_app(TestConfig)


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield
        db.session.remove()


@pytest.fixture
def services(app, app_ctx):
    return app.extensions["jobboard"]


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def alice(services):
    return services.accounts.register("alice", "pw1", "alice@example.com")


def login(client, username, password):
    return client.post("/login", json={"username": username, "password": password})


def register(client, username, password):
    response = client.post("/register", json={"username": username, "password": password,
                                              "confirm_password": password})
    assert response.status_code == 201
    return response.get_json()["user"]
