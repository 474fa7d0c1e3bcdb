from __future__ import annotations

import re

PHONE_KEY_DIGITS = 8

_NON_DIGITS = re.compile(r"\D")


def normalize_phone(phone: str | None) -> str:
    """Digits only, keeping the trailing ``PHONE_KEY_DIGITS``.

    Country prefixes, leading zeros and spacing vary between entries of the
    same number; the subscriber suffix does not.
    """
    if not phone:
        return ""
    digits = _NON_DIGITS.sub("", phone)
    return digits[-PHONE_KEY_DIGITS:]


def normalize_name(name: str | None) -> str:
    if not name:
        return ""
    return " ".join(name.lower().split())


def normalize_email(email: str | None) -> str:
    if not email:
        return ""
    return email.strip().lower()


def split_email(email: str) -> tuple[str, str]:
    """Split into (local part, domain); domain is empty when there is no ``@``."""
    local, sep, domain = email.rpartition("@")
    if not sep:
        return email, ""
    return local, domain
