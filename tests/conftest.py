import pytest
from amble import create_app
from amble.config import Config


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    REPOSITORY_BACKEND = 'sqlalchemy'
    BLOB_BACKEND = 'memory'
    EXTRACT_TEXT_ON_UPLOAD = True


class MemoryTestConfig(TestConfig):
    REPOSITORY_BACKEND = 'memory'


@pytest.fixture
def app():
    app = create_app(TestConfig)
    return app


@pytest.fixture
def app_context(app):
    with app.app_context():
        yield


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def memory_app():
    return create_app(MemoryTestConfig)


@pytest.fixture
def memory_client(memory_app):
    return memory_app.test_client()
