"""
HTTP fixtures: the app served in-process against the per-test database
"""
import httpx
import pytest

from app.core.database import get_db
from app.core.security import create_access_token
from app.main import app


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Bearer headers for an Actor"""
    def _auth_headers(actor) -> dict:
        token = create_access_token({"sub": str(actor.user_id), "role": actor.role})
        return {"Authorization": f"Bearer {token}"}
    return _auth_headers
