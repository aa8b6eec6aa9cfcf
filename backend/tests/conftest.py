"""
Test fixtures and configuration for pytest.
"""

import os
import sys
import uuid
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import get_settings
from db.database import Base, build_engine, get_db, seed_lookup_tables
from models.pose import Difficulty, Pose, PoseType
from models.sequence import Sequence, SequencePose
from models.user import User
from services.versioning import versioning_service


# ============== Database Fixtures ==============


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """A fresh SQLite database file per test, with lookup tables seeded."""
    # Import models to register them
    from models import pose, pose_version, sequence, user  # noqa: F401

    test_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        await seed_lookup_tables(session)
        await session.commit()

    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    async with session_factory() as session:
        yield session


# ============== Domain Fixtures ==============


async def create_user(db: AsyncSession, email: Optional[str] = None) -> User:
    user = User(id=uuid.uuid4(), email=email)
    db.add(user)
    await db.commit()
    return user


async def create_pose(
    db: AsyncSession,
    name: str,
    sanskrit_name: Optional[str] = None,
    description: Optional[str] = None,
    difficulty: Optional[str] = "beginner",
    pose_type: Optional[str] = "standing",
) -> Pose:
    """Create a catalog pose with its first version, committed."""
    difficulty_id = None
    if difficulty:
        difficulty_id = (
            await db.execute(select(Difficulty.id).where(Difficulty.name == difficulty))
        ).scalar_one()
    type_id = None
    if pose_type:
        type_id = (
            await db.execute(select(PoseType.id).where(PoseType.name == pose_type))
        ).scalar_one()

    pose = Pose(
        name=name,
        sanskrit_name=sanskrit_name,
        description=description,
        difficulty_id=difficulty_id,
        type_id=type_id,
        image_url=f"https://img.example.com/{name.lower().replace(' ', '-')}.jpg",
        image_alt=f"{name} illustration",
    )
    db.add(pose)
    await db.flush()
    await versioning_service.create_version(db, pose, check_for_changes=False)
    await db.commit()
    return pose


async def create_sequence(db: AsyncSession, user: User, name: str = "Morning Flow") -> Sequence:
    sequence = Sequence(user_id=user.id, name=name)
    db.add(sequence)
    await db.commit()
    return sequence


async def sequence_positions(db: AsyncSession, sequence_id: uuid.UUID) -> List[tuple]:
    """(entry_id, position) pairs of a sequence ordered by position, read from the store."""
    result = await db.execute(
        select(SequencePose.id, SequencePose.position)
        .where(SequencePose.sequence_id == sequence_id)
        .order_by(SequencePose.position)
    )
    return [(row.id, row.position) for row in result.all()]


def make_token(
    subject: str,
    *,
    audience: Optional[str] = "authenticated",
    expires_in: timedelta = timedelta(hours=1),
    secret: Optional[str] = None,
) -> str:
    settings = get_settings()
    claims = {
        "sub": subject,
        "exp": datetime.now(timezone.utc) + expires_in,
        "email": "yogi@example.com",
    }
    if audience is not None:
        claims["aud"] = audience
    return jwt.encode(claims, secret or settings.SECRET_KEY, algorithm=settings.ALGORITHM)


@pytest_asyncio.fixture
async def user(db_session: AsyncSession) -> User:
    return await create_user(db_session, "owner@example.com")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, "other@example.com")


@pytest_asyncio.fixture
async def sample_poses(db_session: AsyncSession) -> List[Pose]:
    """Five catalog poses, each with version 1."""
    return [
        await create_pose(db_session, "Mountain Pose", "Tadasana", "Stand tall with feet together"),
        await create_pose(
            db_session, "Downward Dog", "Adho Mukha Svanasana", "Inverted V shape",
            difficulty="beginner", pose_type="inversion",
        ),
        await create_pose(
            db_session, "Warrior II", "Virabhadrasana II", "Strong standing lunge",
            difficulty="intermediate",
        ),
        await create_pose(
            db_session, "Crow Pose", "Bakasana", "Arm balance with knees on triceps",
            difficulty="advanced", pose_type="balancing",
        ),
        await create_pose(
            db_session, "Child's Pose", "Balasana", "Resting forward fold",
            pose_type="resting",
        ),
    ]


@pytest_asyncio.fixture
async def sequence(db_session: AsyncSession, user: User) -> Sequence:
    return await create_sequence(db_session, user)


# ============== HTTP Fixtures ==============


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database override."""
    from main import app

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    # Unhandled errors come back as 500 responses instead of being re-raised
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {make_token(str(user.id))}"}


@pytest.fixture
def other_auth_headers(other_user: User) -> dict:
    return {"Authorization": f"Bearer {make_token(str(other_user.id))}"}
