"""
Tests for Bearer token verification and the local user mirror.
"""

import uuid
from datetime import timedelta

import pytest
from sqlalchemy import func, select

from conftest import make_token
from db.database import REQUEST_USER_KEY
from models.user import User
from services import auth as auth_service
from services.errors import UnauthorizedError


class TestDecodeToken:
    def test_valid_token(self):
        subject = str(uuid.uuid4())
        payload = auth_service.decode_token(make_token(subject))

        assert payload["sub"] == subject
        assert payload["aud"] == "authenticated"

    def test_expired_token(self):
        token = make_token(str(uuid.uuid4()), expires_in=timedelta(seconds=-30))
        assert auth_service.decode_token(token) is None

    def test_wrong_secret(self):
        token = make_token(str(uuid.uuid4()), secret="another-signing-secret-" + "x" * 20)
        assert auth_service.decode_token(token) is None

    def test_missing_audience_rejected(self):
        token = make_token(str(uuid.uuid4()), audience=None)
        assert auth_service.decode_token(token) is None

    def test_audience_check_can_be_disabled(self, monkeypatch):
        monkeypatch.setattr(auth_service.settings, "JWT_AUDIENCE", "")
        token = make_token(str(uuid.uuid4()), audience="anything")

        assert auth_service.decode_token(token) is not None

    def test_garbage(self):
        assert auth_service.decode_token("not.a.jwt") is None


class TestUserIdFromPayload:
    def test_uuid_subject(self):
        user_id = uuid.uuid4()
        assert auth_service.user_id_from_payload({"sub": str(user_id)}) == user_id

    @pytest.mark.parametrize("payload", [{}, {"sub": ""}, {"sub": "12345"}, {"sub": None}])
    def test_invalid_subject(self, payload):
        assert auth_service.user_id_from_payload(payload) is None


class TestGetOrCreateUser:
    @pytest.mark.asyncio
    async def test_creates_once(self, db_session):
        user_id = uuid.uuid4()

        first = await auth_service.get_or_create_user(db_session, user_id, "new@example.com")
        second = await auth_service.get_or_create_user(db_session, user_id, "changed@example.com")

        assert first.id == second.id == user_id
        count = (
            await db_session.execute(select(func.count(User.id)).where(User.id == user_id))
        ).scalar_one()
        assert count == 1
        # Email is only taken from the first token seen
        assert second.email == "new@example.com"


class TestGetCurrentUser:
    @pytest.mark.asyncio
    async def test_missing_credentials(self, db_session):
        with pytest.raises(UnauthorizedError):
            await auth_service.get_current_user(None, db_session)

    @pytest.mark.asyncio
    async def test_binds_user_to_session(self, db_session, user):
        from fastapi.security import HTTPAuthorizationCredentials

        user_id = user.id
        credentials = HTTPAuthorizationCredentials(
            scheme="Bearer", credentials=make_token(str(user_id))
        )

        current = await auth_service.get_current_user(credentials, db_session)

        assert current.id == user_id
        assert db_session.info[REQUEST_USER_KEY] == user_id

    @pytest.mark.asyncio
    async def test_invalid_subject(self, db_session):
        from fastapi.security import HTTPAuthorizationCredentials

        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials=make_token("admin"))

        with pytest.raises(UnauthorizedError, match="subject"):
            await auth_service.get_current_user(credentials, db_session)
