"""
TimeBank Backend — Identity Service Unit Tests
===============================================

What:  Registration, login and profile updates against a real per-test
       SQLite database and a temporary asset store.

What we test:
    ✅ Field, email and password-length validation
    ✅ Duplicate email → ConflictError, exactly one row
    ✅ Stored credential is a bcrypt hash, verified by login
    ✅ Unknown email and wrong password fail the same way
    ✅ bcrypt work leaves the event loop free
    ✅ Profile update guarded by ownership; picture replacement order
"""

import asyncio
import time
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from timebank.exceptions import (
    ConflictError,
    DatabaseError,
    InvalidCredentialsError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from timebank.models.user import User
from timebank.security import create_access_token, decode_access_token, verify_password
from timebank.services.asset_store import UploadedFile
from timebank.services.identity_service import IdentityService


async def count_users(db) -> int:
    return (await db.execute(select(func.count()).select_from(User))).scalar_one()


class TestRegister:

    @pytest.fixture(autouse=True)
    def _service(self, store):
        self.service = IdentityService(store=store)

    @pytest.mark.asyncio
    async def test_register_stores_bcrypt_hash(self, db_session):
        user = await self.service.register(db_session, "Alice", "a@x.com", "secret1")
        await db_session.commit()

        assert user.id is not None
        assert user.password_hash != "secret1"
        assert user.password_hash.startswith("$2")
        assert verify_password("secret1", user.password_hash)

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts(self, db_session):
        await self.service.register(db_session, "Alice", "a@x.com", "secret1")
        await db_session.commit()

        with pytest.raises(ConflictError, match="Email already exists"):
            await self.service.register(db_session, "Alice 2", "a@x.com", "other12")
        assert await count_users(db_session) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "name, email, password",
        [("", "a@x.com", "secret1"), ("A", "", "secret1"), ("A", "a@x.com", ""), ("   ", "a@x.com", "x")],
    )
    async def test_missing_fields_rejected(self, db_session, name, email, password):
        with pytest.raises(ValidationError, match="All fields are required"):
            await self.service.register(db_session, name, email, password)
        assert await count_users(db_session) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email", ["plainaddress", "a@b", "a b@x.com", "@x.com"])
    async def test_invalid_email_rejected(self, db_session, email):
        with pytest.raises(ValidationError, match="Invalid email format"):
            await self.service.register(db_session, "A", email, "secret1")

    @pytest.mark.asyncio
    async def test_password_length_boundary(self, db_session):
        with pytest.raises(ValidationError, match="at least 6 characters"):
            await self.service.register(db_session, "A", "a@x.com", "12345")

        user = await self.service.register(db_session, "A", "a@x.com", "123456")
        assert user.id is not None


class TestAuthenticate:

    @pytest.fixture(autouse=True)
    def _service(self, store):
        self.service = IdentityService(store=store)

    @pytest.mark.asyncio
    async def test_login_with_correct_password(self, db_session):
        registered = await self.service.register(db_session, "Alice", "a@x.com", "secret1")
        await db_session.commit()

        user = await self.service.authenticate(db_session, "a@x.com", "secret1")
        assert user.id == registered.id

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_email_look_alike(self, db_session):
        await self.service.register(db_session, "Alice", "a@x.com", "secret1")
        await db_session.commit()

        with pytest.raises(InvalidCredentialsError) as wrong_password:
            await self.service.authenticate(db_session, "a@x.com", "wrong!!")
        with pytest.raises(InvalidCredentialsError) as unknown_email:
            await self.service.authenticate(db_session, "nobody@x.com", "secret1")
        assert wrong_password.value.message == unknown_email.value.message == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_missing_credentials(self, db_session):
        with pytest.raises(ValidationError, match="Email and password are required"):
            await self.service.authenticate(db_session, "", "secret1")

    def test_session_token_round_trip(self):
        assert decode_access_token(create_access_token(42)) == 42


async def longest_stall(stop: asyncio.Event) -> float:
    """Tick every 5 ms until `stop` is set; return the longest gap seen."""
    longest = 0.0
    last = time.perf_counter()
    while not stop.is_set():
        await asyncio.sleep(0.005)
        now = time.perf_counter()
        longest = max(longest, now - last)
        last = now
    return longest


def slow_bcrypt(result):
    def _slow(*args):
        time.sleep(0.3)
        return result
    return _slow


class TestPasswordHashingOffLoop:
    """Other coroutines keep running while a password is hashed or checked."""

    @pytest.fixture(autouse=True)
    def _service(self, store):
        self.service = IdentityService(store=store)

    async def _measure(self, operation) -> float:
        stop = asyncio.Event()
        ticker = asyncio.create_task(longest_stall(stop))
        await asyncio.sleep(0)
        try:
            await operation
        finally:
            stop.set()
        return await ticker

    @pytest.mark.asyncio
    async def test_register_does_not_block_event_loop(self, db_session):
        with patch(
            "timebank.services.identity_service.hash_password",
            side_effect=slow_bcrypt("$2b$04$notarealhash"),
        ):
            stall = await self._measure(
                self.service.register(db_session, "Alice", "a@x.com", "secret1")
            )

        assert stall < 0.1

    @pytest.mark.asyncio
    async def test_login_does_not_block_event_loop(self, db_session):
        await self.service.register(db_session, "Alice", "a@x.com", "secret1")
        await db_session.commit()

        with patch(
            "timebank.services.identity_service.verify_password",
            side_effect=slow_bcrypt(True),
        ):
            stall = await self._measure(
                self.service.authenticate(db_session, "a@x.com", "secret1")
            )

        assert stall < 0.1


class TestUpdateProfile:

    @pytest.fixture(autouse=True)
    def _service(self, store):
        self.store = store
        self.service = IdentityService(store=store)

    async def _user(self, db, name="Alice", email="a@x.com") -> User:
        user = await self.service.register(db, name, email, "secret1")
        await db.commit()
        return user

    @pytest.mark.asyncio
    async def test_owner_updates_fields(self, db_session):
        user = await self._user(db_session)

        updated = await self.service.update_profile(
            db_session,
            user_id=user.id,
            acting_user_id=user.id,
            fields={"bio": "Guitar lessons", "location": "Lisbon", "skills_offered": None},
        )

        assert updated.bio == "Guitar lessons"
        assert updated.location == "Lisbon"
        assert updated.skills_offered is None

    @pytest.mark.asyncio
    async def test_other_user_is_denied_and_nothing_changes(self, db_session):
        alice = await self._user(db_session)
        bob = await self._user(db_session, "Bob", "b@x.com")

        with pytest.raises(UnauthorizedError):
            await self.service.update_profile(
                db_session, user_id=alice.id, acting_user_id=bob.id, fields={"bio": "hacked"}
            )
        await db_session.refresh(alice)
        assert alice.bio is None

    @pytest.mark.asyncio
    async def test_missing_user_is_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.update_profile(
                db_session, user_id=99, acting_user_id=99, fields={"bio": "x"}
            )

    @pytest.mark.asyncio
    async def test_email_taken_by_other_user_conflicts(self, db_session):
        alice = await self._user(db_session)
        await self._user(db_session, "Bob", "b@x.com")

        with pytest.raises(ConflictError):
            await self.service.update_profile(
                db_session, user_id=alice.id, acting_user_id=alice.id, fields={"email": "b@x.com"}
            )

    @pytest.mark.asyncio
    async def test_new_picture_replaces_and_releases_old_one(self, db_session, sample_image_bytes):
        user = await self._user(db_session)

        first = await self.service.update_profile(
            db_session, user.id, user.id, {}, image=UploadedFile("me.jpg", sample_image_bytes)
        )
        old_pic = first.profile_pic
        assert self.store.exists(old_pic)

        second = await self.service.update_profile(
            db_session, user.id, user.id, {}, image=UploadedFile("me2.png", sample_image_bytes)
        )

        assert second.profile_pic != old_pic
        assert second.profile_pic.endswith(".png")
        assert self.store.exists(second.profile_pic)
        assert not self.store.exists(old_pic)

    @pytest.mark.asyncio
    async def test_non_image_picture_rejected(self, db_session):
        user = await self._user(db_session)

        with pytest.raises(ValidationError, match="not supported"):
            await self.service.update_profile(
                db_session, user.id, user.id, {}, image=UploadedFile("virus.exe", b"MZ")
            )
        assert list(self.store.storage_root.iterdir()) == []

    @pytest.mark.asyncio
    async def test_failed_commit_discards_new_picture_and_keeps_old(self, db_session, sample_image_bytes):
        user = await self._user(db_session)
        first = await self.service.update_profile(
            db_session, user.id, user.id, {}, image=UploadedFile("me.jpg", sample_image_bytes)
        )
        old_pic = first.profile_pic

        with patch.object(
            db_session, "commit", AsyncMock(side_effect=OperationalError("UPDATE", {}, Exception("locked")))
        ):
            with pytest.raises(DatabaseError):
                await self.service.update_profile(
                    db_session, user.id, user.id, {}, image=UploadedFile("new.jpg", sample_image_bytes)
                )

        assert [p.name for p in self.store.storage_root.iterdir()] == [old_pic]
