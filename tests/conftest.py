import pytest

from server import create_app


@pytest.fixture
def app():
    app = create_app({
        "SITE_TITLE": "Test <Income>",
        "HOST": "127.0.0.1",
        "PORT": 5000,
        "DEBUG": False,
    })
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
