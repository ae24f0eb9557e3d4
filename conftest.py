"""
Root conftest for the pytest test suite.

This file contains the main fixtures that are used across the entire test suite.

Every test gets fresh, isolated storage: an in-memory SQLite database set up
through Tortoise for the relational backend, and an in-memory MongoDB
(mongomock-motor) for the document backend.

Key Fixtures:
- `anyio_backend`: Specifies the asyncio backend.
- `initialize_test_db`: Creates a fresh relational schema for one test.
- `relational_backend` / `document_backend`: One adapter over fresh storage.
- `backend`: Parametrised over both adapters, for contract tests.
- `admin_identity` / `operator_identity`: Identities backed by stored profiles.
- `client`: An httpx AsyncClient talking to the app in-process, wired to `backend`.
- `admin_headers` / `operator_headers`: Bearer headers obtained through /auth/token.
"""

import uuid
from typing import Any, AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from mongomock_motor import AsyncMongoMockClient
from tortoise import Tortoise

from scout_inventory.backends.base import BackendAdapter
from scout_inventory.backends.document import DocumentBackend, DocumentStoreConnection
from scout_inventory.backends.factory import get_backend
from scout_inventory.backends.relational import RelationalBackend, build_tortoise_config
from scout_inventory.common.domains import Role
from scout_inventory.features.auth.schemas import Identity, ProfileCreate
from scout_inventory.features.auth.security import get_password_hash
from scout_inventory.main import app as actual_app

ADMIN_EMAIL = "admin@example.com"
OPERATOR_EMAIL = "operator@example.com"
PASSWORD = "password123"


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    return "asyncio"


@pytest_asyncio.fixture(scope="function")
async def initialize_test_db() -> AsyncGenerator[None, None]:
    """
    Creates a fresh in-memory database and schema for one test and tears it
    down afterwards.
    """
    await Tortoise.init(config=build_tortoise_config("sqlite://:memory:"))
    await Tortoise.generate_schemas()

    yield

    await Tortoise.close_connections()


def _document_backend() -> DocumentBackend:
    connection = DocumentStoreConnection.from_client(
        AsyncMongoMockClient(), f"scout_inventory_test_{uuid.uuid4().hex}"
    )
    return DocumentBackend(connection)


@pytest_asyncio.fixture(scope="function")
async def relational_backend(initialize_test_db) -> RelationalBackend:
    return RelationalBackend()


@pytest_asyncio.fixture(scope="function")
async def document_backend() -> AsyncGenerator[DocumentBackend, None]:
    backend = _document_backend()
    yield backend
    await backend.close()


@pytest_asyncio.fixture(scope="function", params=["relational", "document"])
async def backend(request) -> AsyncGenerator[BackendAdapter, None]:
    """Runs the test once against each backend adapter."""
    if request.param == "relational":
        await Tortoise.init(config=build_tortoise_config("sqlite://:memory:"))
        await Tortoise.generate_schemas()
        yield RelationalBackend()
        await Tortoise.close_connections()
    else:
        document = _document_backend()
        yield document
        await document.close()


async def _add_profile(backend: BackendAdapter, email: str, full_name: str, role: Role):
    return await backend.create_profile(
        ProfileCreate(
            email=email,
            full_name=full_name,
            hashed_password=get_password_hash(PASSWORD),
            role=role,
        )
    )


@pytest_asyncio.fixture(scope="function")
async def admin_identity(backend: BackendAdapter) -> Identity:
    profile = await _add_profile(backend, ADMIN_EMAIL, "Admin Fixture", Role.ADMIN)
    return Identity(user_id=profile.user_id, email=profile.email)


@pytest_asyncio.fixture(scope="function")
async def operator_identity(backend: BackendAdapter) -> Identity:
    profile = await _add_profile(backend, OPERATOR_EMAIL, "Operator Fixture", Role.OPERATOR)
    return Identity(user_id=profile.user_id, email=profile.email)


@pytest_asyncio.fixture(scope="function")
async def client(backend: BackendAdapter) -> AsyncGenerator[httpx.AsyncClient, Any]:
    """
    Provides a non-authenticated client. The app's lifespan does not run;
    requests reach the test backend through a dependency override.
    """
    actual_app.dependency_overrides[get_backend] = lambda: backend
    transport = httpx.ASGITransport(app=actual_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
    actual_app.dependency_overrides.clear()


async def _login(client: httpx.AsyncClient, email: str) -> dict[str, str]:
    response = await client.post("/auth/token", data={"username": email, "password": PASSWORD})
    if response.status_code != 200:
        raise Exception(f"Authentication failed for {email}: {response.text}")
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest_asyncio.fixture(scope="function")
async def admin_headers(client: httpx.AsyncClient, admin_identity: Identity) -> dict[str, str]:
    return await _login(client, admin_identity.email)


@pytest_asyncio.fixture(scope="function")
async def operator_headers(client: httpx.AsyncClient, operator_identity: Identity) -> dict[str, str]:
    return await _login(client, operator_identity.email)
