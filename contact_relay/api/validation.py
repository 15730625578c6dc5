"""Field validation for contact form submissions.

The checks run in a fixed order (name, email, message) and only the first
failure is reported.
"""

import re
from typing import Any

from contact_relay.api.errors import InvalidEmail, InvalidMessage, InvalidName

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 80
EMAIL_MAX_LENGTH = 160
MESSAGE_MIN_LENGTH = 5
MESSAGE_MAX_LENGTH = 2000

# local@domain.tld, not RFC 5322
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")


def _trimmed_within(value: Any, minimum: int, maximum: int) -> str | None:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    if minimum <= len(trimmed) <= maximum:
        return trimmed
    return None


def validate_name(value: Any) -> str:
    name = _trimmed_within(value, NAME_MIN_LENGTH, NAME_MAX_LENGTH)
    if name is None:
        raise InvalidName()
    return name


def validate_email(value: Any) -> str:
    """Validate an email address.

    The length bound applies to the raw value, before trimming.

    Args:
        value: Candidate email from the request body

    Returns:
        The trimmed email

    Raises:
        InvalidEmail: If the value is not text, is too long or has no
            ``local@domain.tld`` shape
    """
    if not isinstance(value, str) or len(value) > EMAIL_MAX_LENGTH:
        raise InvalidEmail()
    if EMAIL_PATTERN.fullmatch(value) is None:
        raise InvalidEmail()
    return value.strip()


def validate_message(value: Any) -> str:
    message = _trimmed_within(value, MESSAGE_MIN_LENGTH, MESSAGE_MAX_LENGTH)
    if message is None:
        raise InvalidMessage()
    return message


def validate_submission(name: Any, email: Any, message: Any) -> tuple[str, str, str]:
    """Validate a submission and return its trimmed fields.

    Args:
        name: Submitter's name
        email: Submitter's email address
        message: Message content

    Returns:
        Tuple of trimmed (name, email, message)

    Raises:
        InvalidName: If the name check fails
        InvalidEmail: If the name passes and the email check fails
        InvalidMessage: If name and email pass and the message check fails
    """
    return validate_name(name), validate_email(email), validate_message(message)
