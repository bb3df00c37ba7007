"""Unit tests for OneTimeCodeService.

Covers single use, lazy deletion of expired codes, the email lookup
fallback and replacement of earlier codes on issue.
"""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import patch

import pytest
from sqlmodel import select

from vault_gateway.config import StepUpConfig
from vault_gateway.errors import ValidationError
from vault_gateway.models.one_time_code import OneTimeCode
from vault_gateway.services.one_time_code import OneTimeCodeService
from vault_gateway.utils.datetime import utcnow


@pytest.fixture
def service(db_session) -> OneTimeCodeService:
    return OneTimeCodeService(db_session, StepUpConfig())


async def _all_codes(db_session) -> list[OneTimeCode]:
    result = await db_session.execute(select(OneTimeCode))
    return list(result.scalars().all())


class TestCodeFormat:
    def test_generated_code_is_six_digits(self, service):
        for _ in range(50):
            code = service.generate_code()
            assert len(code) == 6
            assert code.isdigit()

    def test_accepts_six_chars(self, service):
        assert service.validate_code_format("123456") == "123456"

    @pytest.mark.parametrize("code", [None, "", "12345", "1234567"])
    def test_rejects_wrong_length(self, service, code):
        with pytest.raises(ValidationError) as exc_info:
            service.validate_code_format(code)
        assert exc_info.value.message == "Invalid code format"


class TestIssue:
    @pytest.mark.asyncio
    async def test_ten_minute_expiry(self, service):
        before = utcnow()

        record = await service.issue("u1", "user@example.com")

        assert record.expires_at - record.created_at == timedelta(minutes=10)
        assert record.created_at >= before
        assert record.used is False

    @pytest.mark.asyncio
    async def test_replaces_earlier_codes(self, service, db_session):
        with patch.object(service, "generate_code", side_effect=["111111", "222222"]):
            await service.issue("u1")
            await service.issue("u1")

        codes = await _all_codes(db_session)
        assert [c.code for c in codes] == ["222222"]
        assert await service.verify("u1", "111111") is False
        assert await service.verify("u1", "222222") is True

    @pytest.mark.asyncio
    async def test_other_users_untouched(self, service, db_session):
        await service.issue("u1")
        await service.issue("u2")

        assert {c.user_id for c in await _all_codes(db_session)} == {"u1", "u2"}


class TestVerify:
    @pytest.mark.asyncio
    async def test_single_use(self, service, db_session):
        record = await service.issue("u1")

        assert await service.verify("u1", record.code) is True
        assert await service.verify("u1", record.code) is False
        assert await _all_codes(db_session) == []

    @pytest.mark.asyncio
    async def test_wrong_code(self, service):
        record = await service.issue("u1")
        wrong = "999999" if record.code != "999999" else "888888"

        assert await service.verify("u1", wrong) is False

    @pytest.mark.asyncio
    async def test_code_bound_to_user(self, service):
        record = await service.issue("u1")

        assert await service.verify("u2", record.code) is False
        assert await service.verify("u1", record.code) is True

    @pytest.mark.asyncio
    async def test_expired_code_deleted(self, service, db_session):
        now = utcnow()
        db_session.add(
            OneTimeCode(
                id="otc-1",
                user_id="u1",
                code="123456",
                created_at=now - timedelta(minutes=11),
                expires_at=now - timedelta(minutes=1),
            )
        )
        await db_session.commit()

        assert await service.verify("u1", "123456") is False
        assert await _all_codes(db_session) == []

    @pytest.mark.asyncio
    async def test_email_fallback(self, service):
        record = await service.issue("u1", "User@Example.com")

        assert await service.verify(None, record.code, email="user@example.COM") is True

    @pytest.mark.asyncio
    async def test_user_id_preferred_over_email(self, service):
        record = await service.issue("u1", "user@example.com")

        assert await service.verify("u2", record.code, email="user@example.com") is False

    @pytest.mark.asyncio
    async def test_missing_user_and_email(self, service):
        with pytest.raises(ValidationError) as exc_info:
            await service.verify(None, "123456")
        assert exc_info.value.message == "Missing required fields"

    @pytest.mark.asyncio
    async def test_lost_race(self, service, db_session):
        """A code consumed between lookup and delete does not verify twice."""
        record = await service.issue("u1")
        original_execute = db_session.execute
        calls = {"n": 0}

        async def execute_then_steal(statement, *args, **kwargs):
            calls["n"] += 1
            if calls["n"] == 2:
                # Another verifier wins right before our conditional delete
                await original_execute(
                    OneTimeCode.__table__.delete().where(OneTimeCode.__table__.c.id == record.id)
                )
            return await original_execute(statement, *args, **kwargs)

        with patch.object(db_session, "execute", side_effect=execute_then_steal):
            assert await service.verify("u1", record.code) is False
