import pytest
from fastapi.testclient import TestClient

from projectdash.backend import connect_database
from projectdash.main import create_app
from projectdash.storage import MemStorage


@pytest.fixture
def storage():
    return MemStorage(seed=False)


@pytest.fixture
def db_storage():
    return connect_database("sqlite://", seed=False)


@pytest.fixture
def client(storage):
    with TestClient(create_app(storage)) as c:
        yield c
