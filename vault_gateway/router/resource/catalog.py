"""Closed catalog of routable resources and path parsing.

The enumeration is the gateway's authorization boundary: a table that is
not a member can never be reached, whatever the caller sends.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Resource(str, Enum):
    """Readable resource tables.

    Each member carries a description and whether listings may be filtered
    by ``entity_id``.
    """

    description: str
    filterable: bool

    def __new__(cls, value: str, description: str, filterable: bool = True) -> "Resource":
        obj = str.__new__(cls, value)
        obj._value_ = value
        obj.description = description
        obj.filterable = filterable
        return obj

    ENTITIES = ("entities", "Legal entities (LLCs, Corps, etc.)", False)
    BANK_ACCOUNTS = ("bank_accounts", "Bank accounts linked to entities")
    CREDIT_CARDS = ("credit_cards", "Credit cards linked to entities")
    ADDRESSES = ("addresses", "Physical addresses")
    CONTRACTS = ("contracts", "Contracts and agreements")
    PHONE_NUMBERS = ("phone_numbers", "Phone numbers")
    TAX_IDS = ("tax_ids", "Tax identification numbers")
    EMAIL_ADDRESSES = ("email_addresses", "Email addresses")
    DIRECTORS_UBOS = ("directors_ubos", "Directors and UBOs")
    ENTITY_DOCUMENTS = ("entity_documents", "Entity documents")
    ENTITY_FILINGS = ("entity_filings", "Filing records")
    FILING_TASKS = ("filing_tasks", "Filing tasks and reminders")
    ENTITY_WEBSITES = ("entity_websites", "Websites")
    ENTITY_SOFTWARE = ("entity_software", "Software subscriptions")
    SOCIAL_MEDIA_ACCOUNTS = ("social_media_accounts", "Social media accounts")
    ACCOUNTANT_FIRMS = ("accountant_firms", "Accountant firms")
    LAW_FIRMS = ("law_firms", "Law firms")
    REGISTRATION_AGENTS = ("registration_agents", "Registered agents")
    ADVISORS = ("advisors", "Advisors")
    CONSULTANTS = ("consultants", "Consultants")
    AUDITORS = ("auditors", "Auditors")
    MERCHANT_ACCOUNTS = ("merchant_accounts", "Merchant / payment accounts")
    SHARE_CLASSES = ("share_classes", "Share classes (cap table)")
    SHAREHOLDERS = ("shareholders", "Shareholders (cap table)")
    EQUITY_TRANSACTIONS = ("equity_transactions", "Equity transactions")
    DOCUMENT_TYPES = ("document_types", "Document type definitions", False)
    FILING_TYPES = ("filing_types", "Filing type definitions", False)
    TAX_ID_TYPES = ("tax_id_types", "Tax ID type definitions", False)
    ISSUING_AUTHORITIES = ("issuing_authorities", "Issuing authority definitions", False)

    @classmethod
    def lookup(cls, name: str) -> "Resource | None":
        """Member for a table name, or None outside the catalog."""
        try:
            return cls(name)
        except ValueError:
            return None


@dataclass(frozen=True)
class Route:
    """A matched gateway path."""

    resource: Resource
    resource_id: str | None = None


API_VERSION = "v1"


def parse_route(path: str, prefix: str) -> Route | None:
    """Match ``/{prefix}/v1/{resource}[/{id}]``.

    Returns None for any other shape or for a resource outside the catalog;
    callers answer that with the discovery document.
    """
    parts = [p for p in path.split("/") if p]
    if len(parts) not in (3, 4):
        return None
    if parts[0] != prefix.strip("/") or parts[1] != API_VERSION:
        return None

    resource = Resource.lookup(parts[2])
    if resource is None:
        return None

    resource_id = parts[3] if len(parts) == 4 else None
    return Route(resource=resource, resource_id=resource_id)


def endpoint_for(resource: Resource, prefix: str) -> str:
    return f"/{prefix.strip('/')}/{API_VERSION}/{resource.value}"
