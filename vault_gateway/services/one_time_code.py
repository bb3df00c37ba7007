"""One-time verification code service.

A code verifies at most once. Consumption is a conditional single-row
delete, so two concurrent verifications of the same code cannot both win.
"""

from __future__ import annotations

import secrets
import uuid
from datetime import timedelta

import structlog
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from vault_gateway.config import StepUpConfig
from vault_gateway.errors import ValidationError
from vault_gateway.models.lifecycle import TokenState
from vault_gateway.models.one_time_code import OneTimeCode
from vault_gateway.utils.datetime import utcnow

logger = structlog.get_logger()


def _mask(code: str) -> str:
    return code[:2] + "****"


class OneTimeCodeService:
    """Issues and verifies one-time codes."""

    def __init__(self, db_session: AsyncSession, config: StepUpConfig | None = None) -> None:
        self._db = db_session
        self._config = config or StepUpConfig()
        self._log = logger.bind(service="one_time_code")

    def validate_code_format(self, code: str | None) -> str:
        """Return the code if it has the configured length.

        Raises:
            ValidationError: Missing or wrong-length code
        """
        if not code or len(code) != self._config.code_length:
            raise ValidationError("Invalid code format")
        return code

    def generate_code(self) -> str:
        """Random numeric code without leading-zero loss."""
        length = self._config.code_length
        low = 10 ** (length - 1)
        return str(low + secrets.randbelow(9 * low))

    async def issue(self, user_id: str, email: str | None = None) -> OneTimeCode:
        """Create a fresh code for a user.

        All previous codes of the user are removed so only the latest
        one can verify. Delivery is up to the caller.
        """
        now = utcnow()
        await self._db.execute(delete(OneTimeCode).where(OneTimeCode.user_id == user_id))

        record = OneTimeCode(
            id=str(uuid.uuid4()),
            user_id=user_id,
            email=email.lower() if email else None,
            code=self.generate_code(),
            created_at=now,
            expires_at=now + timedelta(minutes=self._config.code_ttl_minutes),
        )
        self._db.add(record)
        await self._db.commit()

        self._log.info("code.issue", user_id=user_id, expires_at=record.expires_at.isoformat())
        return record

    async def verify(
        self,
        user_id: str | None,
        code: str,
        *,
        email: str | None = None,
    ) -> bool:
        """Consume a code.

        Looks the code up by user id, or by email when no user id is given.
        Unknown, already used and expired codes are all just invalid.
        An expired code is deleted when observed.

        Raises:
            ValidationError: Neither user_id nor email given
        """
        if not user_id and not email:
            raise ValidationError("Missing required fields")

        query = select(OneTimeCode).where(
            OneTimeCode.code == code,
            OneTimeCode.used == False,  # noqa: E712
        )
        if user_id:
            query = query.where(OneTimeCode.user_id == user_id)
        else:
            query = query.where(OneTimeCode.email == email.lower())

        result = await self._db.execute(query.order_by(OneTimeCode.created_at.desc()))
        record = result.scalars().first()

        if record is None:
            self._log.info("code.verify", outcome="unknown", user_id=user_id, code=_mask(code))
            return False

        now = utcnow()
        if record.state(now) is TokenState.EXPIRED:
            await self._db.delete(record)
            await self._db.commit()
            self._log.info("code.verify", outcome="expired", user_id=record.user_id)
            return False

        consumed = await self._db.execute(
            delete(OneTimeCode)
            .where(
                OneTimeCode.id == record.id,
                OneTimeCode.used == False,  # noqa: E712
                OneTimeCode.expires_at > now,
            )
            .execution_options(synchronize_session=False)
        )
        await self._db.commit()

        if consumed.rowcount != 1:
            self._log.info("code.verify", outcome="lost_race", user_id=record.user_id)
            return False

        self._log.info("code.verify", outcome="valid", user_id=record.user_id)
        return True
