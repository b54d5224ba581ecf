"""
DeTransport Ads — domain constants: tariff plans, field limits, page sizes.
Settings can override any of them (ADS_TARIFFS, ADS_FIELD_LIMITS, ...).
"""

from dataclasses import dataclass

from django.conf import settings


@dataclass(frozen=True)
class Plan:
    """A fixed (duration, price) pair offered to the user."""

    days: int
    price: int

    @property
    def identifier(self) -> str:
        return f"TARIFF_{self.days}"


DEFAULT_TARIFFS = (
    Plan(days=1, price=120),
    Plan(days=7, price=620),
    Plan(days=14, price=1100),
    Plan(days=30, price=2200),
)

# Max characters per free-text step; longer input is rejected.
DEFAULT_FIELD_LIMITS = {
    "title": 60,
    "description": 200,
    "contact_info": 120,
    "customer_name": 60,
    # ads_requests.link_url column length
    "link_url": 2048,
}

# Admin /list_pending page size
MODERATION_PAGE_SIZE = 20

# Read API page size
PUBLICATION_PAGE_SIZE = 100


def get_tariffs() -> tuple[Plan, ...]:
    return tuple(getattr(settings, "ADS_TARIFFS", DEFAULT_TARIFFS))


def get_plan(identifier: str | None) -> Plan | None:
    """Return the plan for a TARIFF_<days> identifier, or None."""
    if not identifier:
        return None
    for plan in get_tariffs():
        if plan.identifier == identifier.strip():
            return plan
    return None


def get_field_limit(field: str) -> int:
    limits = getattr(settings, "ADS_FIELD_LIMITS", DEFAULT_FIELD_LIMITS)
    return limits.get(field, DEFAULT_FIELD_LIMITS[field])


def get_payment_details() -> dict:
    return {
        "card": getattr(settings, "ADS_PAYMENT_CARD", ""),
        "iban": getattr(settings, "ADS_PAYMENT_IBAN", ""),
    }
