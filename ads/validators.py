"""
DeTransport Ads — validators for dialogue text fields.
Length limits per field (strictly greater-than rejects) and an http(s) URL shape check for links.
"""

import re

from django.core.exceptions import ValidationError

from ads.conf import get_field_limit
from ads.exceptions import ValidationFailure

# scheme://host.rest with no whitespace anywhere
LINK_URL_PATTERN = re.compile(r"https?://\S+\.\S+", re.IGNORECASE)


def validate_max_length(value: str, field: str) -> None:
    limit = get_field_limit(field)
    if len(value) > limit:
        raise ValidationError(
            "Text is too long (max %(limit)s characters).",
            code="too_long",
            params={"limit": limit},
        )


def validate_link_url(value: str) -> None:
    """Accept only http/https URLs with a dot after the host start, e.g. https://shop.example/x."""
    if not value or not LINK_URL_PATTERN.fullmatch(value):
        raise ValidationError("Invalid link.", code="invalid_link")


def clean_step_input(field: str, text: str | None) -> str:
    """
    Trim and validate input for a text step. Returns the cleaned value.
    Raises ValidationFailure with an i18n key: "empty_text", "<field>_too_long" or "invalid_link".
    """
    value = (text or "").strip()
    if not value:
        raise ValidationFailure("empty_text")
    try:
        if field == "link_url":
            validate_link_url(value)
        validate_max_length(value, field)
    except ValidationError as e:
        code = getattr(e, "code", None)
        if code == "too_long":
            raise ValidationFailure(f"{field}_too_long", limit=get_field_limit(field)) from e
        raise ValidationFailure("invalid_link") from e
    return value
