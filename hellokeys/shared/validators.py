"""Shared validation utilities"""

import re
from typing import Optional


def normalize_fr_phone(phone: str) -> str:
    """
    Normalize a French phone number to E.164 format.

    Accepts national (06 12 34 56 78), international (0033..., 33...) and
    already normalized (+33...) inputs. Non-French international numbers are
    returned with separators stripped.
    """
    p = re.sub(r"[\s\-()]", "", phone.strip())
    if p.startswith("00"):
        p = f"+{p[2:]}"
    if p.startswith("33") and not p.startswith("+"):
        p = f"+{p}"
    if not p.startswith("+") and len(p) == 10 and p.startswith("0"):
        p = f"+33{p[1:]}"
    if p.startswith("+0"):
        p = f"+33{p[2:]}"
    # +33 followed by the national trunk prefix
    if p.startswith("+33") and len(p) > 3 and p[3] == "0":
        p = f"+33{p[4:]}"
    return p


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Format d'email invalide.")

    return email


def empty_strings_to_none(data: dict) -> dict:
    """Convert blank string values to None, leaving other types untouched"""
    return {
        key: (None if isinstance(value, str) and value.strip() == "" else value)
        for key, value in data.items()
    }


def reject_null(value):
    """Refuse an explicit null for a column that cannot be cleared"""
    if value is None:
        raise ValueError("Ce champ ne peut pas être vide.")
    return value
