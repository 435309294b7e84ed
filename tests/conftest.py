"""Test configuration and fixtures"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from uuid import uuid4

from expertassist.main import app
from expertassist.config import Settings, get_settings
from expertassist.database import Base, get_db
from expertassist.models.user import User
from expertassist.models.expert import Expert, ExpertType
from expertassist.models.call import Call, CallStatus
from expertassist.api.auth import create_access_token, get_password_hash
from expertassist.api.dependencies import get_orchestrator
from expertassist.calls.generation import TemplateSummarizer, TemplateTranscriptSource
from expertassist.calls.orchestrator import CallOrchestrator
from expertassist.calls.store import SQLAlchemyCallStore
from expertassist.telephony.gateway import TelephonyGateway


@pytest.fixture
async def engine(tmp_path):
    """File-backed SQLite so the orchestrator's own sessions see test data"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)

    @event.listens_for(engine.sync_engine, "connect")
    def _sqlite_pragmas(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def test_db(session_factory):
    """Session used by fixtures to seed data"""
    async with session_factory() as session:
        yield session


@pytest.fixture
def test_settings():
    return Settings(
        demo_mode=True,
        twilio_account_sid="",
        twilio_auth_token="",
        twilio_phone_number="+15550001111",
        api_base_url="http://test",
    )


@pytest.fixture
def call_store(session_factory):
    return SQLAlchemyCallStore(session_factory)


@pytest.fixture
def gateway(test_settings):
    return TelephonyGateway(test_settings)


@pytest.fixture
def orchestrator(call_store, gateway):
    """Orchestrator with no artificial delays"""
    return CallOrchestrator(
        store=call_store,
        gateway=gateway,
        transcripts=TemplateTranscriptSource(),
        summarizer=TemplateSummarizer(),
        callback_base_url="http://test",
        connect_delay=0,
        call_duration=0,
        external_timeout=5.0,
    )


@pytest.fixture
def started_calls(orchestrator, monkeypatch):
    """Call ids handed to the orchestrator; tests drive the lifecycle themselves"""
    started = []
    monkeypatch.setattr(orchestrator, "start", lambda call_id: started.append(call_id))
    return started


async def create_user(db, email, first_name="Test", last_name="User"):
    user = User(
        id=uuid4(),
        email=email,
        hashed_password=get_password_hash("testpass123"),
        first_name=first_name,
        last_name=last_name,
        company="City Real Estate",
        is_active=True,
    )
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
async def test_user(test_db):
    """Create a test user"""
    return await create_user(test_db, "test@example.com", "Jane", "Smith")


@pytest.fixture
async def other_user(test_db):
    """A second account that must never see test_user's data"""
    return await create_user(test_db, "other@example.com", "Other", "Person")


@pytest.fixture
async def test_expert(test_db, test_user):
    """Create a test expert"""
    expert = Expert(
        id=uuid4(),
        user_id=test_user.id,
        name="John Doe",
        phone_number="9015551234",
        expert_type=ExpertType.LENDER,
        company="ABC Mortgage",
    )
    test_db.add(expert)
    await test_db.commit()
    return expert


@pytest.fixture
async def other_expert(test_db, other_user):
    expert = Expert(
        id=uuid4(),
        user_id=other_user.id,
        name="Someone Else",
        phone_number="+15557654321",
        expert_type=ExpertType.REALTOR,
    )
    test_db.add(expert)
    await test_db.commit()
    return expert


@pytest.fixture
async def pending_call(test_db, test_user, test_expert):
    """A PENDING call that nobody has started"""
    call = Call(
        id=uuid4(),
        user_id=test_user.id,
        expert_id=test_expert.id,
        goal="Check on the mortgage pre-approval status",
        context_links=["https://example.com/listing/42"],
        context_text="Client is Michael Johnson",
        status=CallStatus.PENDING,
    )
    test_db.add(call)
    await test_db.commit()
    return call


@pytest.fixture
async def client(session_factory, orchestrator, started_calls, test_settings):
    """Create test client with overridden database and call services"""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_settings] = lambda: test_settings

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
async def authenticated_client(client, test_user):
    """Create authenticated test client"""
    client.headers.update(auth_headers(test_user))
    return client


@pytest.fixture
def other_headers(other_user):
    """Authorization headers for other_user"""
    return auth_headers(other_user)
