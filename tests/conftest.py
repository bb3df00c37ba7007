"""Shared fixtures: in-memory SQLite store with gateway tables and sample resources."""

from __future__ import annotations

from datetime import datetime

import pytest
from sqlalchemy import Column, DateTime, MetaData, String, Table
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

import vault_gateway.models  # noqa: F401

# Stand-ins for tables owned by the managed data platform
resource_metadata = MetaData()

entities_table = Table(
    "entities",
    resource_metadata,
    Column("id", String, primary_key=True),
    Column("name", String),
    Column("created_at", DateTime),
)

bank_accounts_table = Table(
    "bank_accounts",
    resource_metadata,
    Column("id", String, primary_key=True),
    Column("entity_id", String),
    Column("bank_name", String),
    Column("created_at", DateTime),
)

# Carries entity_id but is not filterable
document_types_table = Table(
    "document_types",
    resource_metadata,
    Column("id", String, primary_key=True),
    Column("entity_id", String),
    Column("name", String),
    Column("created_at", DateTime),
)

ENTITY_ROWS = [
    {"id": "e1", "name": "Acme LLC", "created_at": datetime(2024, 1, 1)},
    {"id": "e2", "name": "Globex Corp", "created_at": datetime(2024, 1, 2)},
]

BANK_ACCOUNT_ROWS = [
    {"id": "b1", "entity_id": "e1", "bank_name": "First", "created_at": datetime(2024, 2, 1)},
    {"id": "b2", "entity_id": "e1", "bank_name": "Second", "created_at": datetime(2024, 2, 2)},
    {"id": "b3", "entity_id": "e1", "bank_name": "Third", "created_at": datetime(2024, 2, 3)},
    {"id": "b4", "entity_id": "e2", "bank_name": "Fourth", "created_at": datetime(2024, 2, 4)},
]

DOCUMENT_TYPE_ROWS = [
    {"id": "d1", "entity_id": "e1", "name": "Articles", "created_at": datetime(2024, 3, 1)},
    {"id": "d2", "entity_id": None, "name": "Bylaws", "created_at": datetime(2024, 3, 2)},
]


@pytest.fixture
async def db_session():
    """Create in-memory SQLite database and session."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
        await conn.run_sync(resource_metadata.create_all)
        await conn.execute(entities_table.insert(), ENTITY_ROWS)
        await conn.execute(bank_accounts_table.insert(), BANK_ACCOUNT_ROWS)
        await conn.execute(document_types_table.insert(), DOCUMENT_TYPE_ROWS)

    async_session_factory = sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_factory() as session:
        yield session

    await engine.dispose()
