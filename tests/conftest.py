import os

os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
os.environ["SUBSCRIPTION_SWEEPS_ENABLED"] = "false"

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.models.all_models  # noqa: F401
from app.database import Base, get_connect_args, get_db, get_session_factory
from app.main import app
from app.models.exam_model import ExamModel
from app.models.sub_category_model import SubCategoryModel
from app.models.subject_availability_model import SubjectAvailabilityModel
from app.models.subject_model import SubjectModel
from app.models.subscription_model import SubscriptionModel
from app.models.topic_model import TopicModel
from app.models.track_model import TrackModel
from app.models.user_model import UserModel, UserRole
from app.services.auth import create_access_token, hash_password

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
PASSWORD = "secret123"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args=get_connect_args(TEST_DATABASE_URL),
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client
    app.dependency_overrides.clear()


async def create_user(
    db: AsyncSession,
    email: str,
    role: UserRole = UserRole.USER,
    password: str = PASSWORD,
) -> UserModel:
    user = UserModel(
        name=email.split("@")[0],
        email=email,
        password_hash=hash_password(password),
        role=role.value,
    )
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
def make_user(db):
    async def make(email: str, role: UserRole = UserRole.USER) -> UserModel:
        return await create_user(db, email, role=role)

    return make


def auth_headers(user: UserModel) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
async def admin_user(db) -> UserModel:
    return await create_user(db, "admin@centratutor.com", role=UserRole.ADMIN)


@pytest.fixture
async def student(db) -> UserModel:
    return await create_user(db, "student@example.com")


@pytest.fixture
def admin_headers(admin_user) -> dict:
    return auth_headers(admin_user)


@pytest.fixture
def user_headers(student) -> dict:
    return auth_headers(student)


async def add_subscription(
    db: AsyncSession, user_id: int, days_left: float, plan: str = "3months"
) -> SubscriptionModel:
    now = datetime.now()
    subscription = SubscriptionModel(
        user_id=user_id,
        plan=plan,
        total_days=91,
        active=True,
        activated_at=now - timedelta(days=30),
        expires_at=now + timedelta(days=days_left),
        activation_method="payment",
    )
    db.add(subscription)
    await db.commit()
    return subscription


@pytest.fixture
def make_subscription(db):
    async def make(user_id: int, days_left: float, plan: str = "3months"):
        return await add_subscription(db, user_id, days_left, plan)

    return make


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
async def catalog(db) -> SimpleNamespace:
    """WAEC with Mathematics, two topics, a notes channel and a past questions channel.

    Notes carry a two-week track, past questions a 2023 year track.
    """
    exam = ExamModel(name="WAEC", display_name="West African Examinations")
    db.add(exam)
    await db.flush()

    notes = SubCategoryModel(
        exam_id=exam.id,
        name="notes",
        display_name="Notes",
        route_path="notes",
        content_type="json",
        order_index=2,
    )
    past = SubCategoryModel(
        exam_id=exam.id,
        name="pastquestions",
        display_name="Past Questions",
        route_path="pastquestions",
        content_type="json",
        order_index=1,
    )
    maths = SubjectModel(exam_id=exam.id, name="Mathematics", display_name="Mathematics")
    db.add_all([notes, past, maths])
    await db.flush()

    algebra = TopicModel(
        exam_id=exam.id,
        subject_id=maths.id,
        name="Algebra",
        display_name="Algebra",
        order_index=1,
    )
    geometry = TopicModel(
        exam_id=exam.id,
        subject_id=maths.id,
        name="Geometry",
        display_name="Geometry",
        order_index=2,
    )
    weekly = TrackModel(
        exam_id=exam.id,
        sub_category_id=notes.id,
        name="Weekly",
        display_name="Weekly Plan",
        track_type="weeks",
        duration=2,
    )
    year_2023 = TrackModel(
        exam_id=exam.id,
        sub_category_id=past.id,
        name="2023",
        display_name="2023",
        track_type="years",
        duration=1,
        year=2023,
    )
    db.add_all([algebra, geometry, weekly, year_2023])
    await db.flush()

    db.add_all(
        [
            SubjectAvailabilityModel(
                exam_id=exam.id, subject_id=maths.id, sub_category_id=notes.id
            ),
            SubjectAvailabilityModel(
                exam_id=exam.id, subject_id=maths.id, sub_category_id=past.id
            ),
        ]
    )
    await db.commit()

    return SimpleNamespace(
        exam=exam,
        notes=notes,
        past=past,
        maths=maths,
        algebra=algebra,
        geometry=geometry,
        weekly=weekly,
        year_2023=year_2023,
    )
