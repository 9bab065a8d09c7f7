import pytest
from fastapi.testclient import TestClient

from local_library.api import app, get_store
from local_library.database import initialize_database


@pytest.fixture
def store(tmp_path, request):
    # Each test gets its own database file
    db_file = str(tmp_path / f"test_{request.node.name}.db")
    yield initialize_database(db_file)


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    test_client = TestClient(app)
    try:
        yield test_client
    finally:
        app.dependency_overrides.pop(get_store, None)
