import re
import uuid
from typing import Any, Dict, Optional

from fastapi import Request

from storefront.utils.errors import ValidationError

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
UK_POSTCODE_RE = re.compile(r"^[A-Z]{1,2}\d[A-Z\d]?\s*\d[A-Z]{2}$")
DIGITS_RE = re.compile(r"^[0-9]+$")

# Plafond des colonnes integer (int4) côté Postgres
INT4_MAX = 2**31 - 1


def normalize_email(v: Any) -> str:
    return str(v or "").strip().lower()


def is_valid_email(v: Any) -> bool:
    return bool(EMAIL_RE.match(normalize_email(v)))


def validate_email(v: Any, message: str = "Valid email is required.") -> str:
    email = normalize_email(v)
    if not EMAIL_RE.match(email):
        raise ValidationError(message)
    return email


def validate_postcode(v: Any) -> str:
    postcode = str(v or "").strip().upper()
    if not UK_POSTCODE_RE.match(postcode):
        raise ValidationError("Valid UK postcode is required.")
    return postcode


def require_text(v: Any, message: str) -> str:
    text = str(v or "").strip() if not isinstance(v, (dict, list)) else ""
    if not text:
        raise ValidationError(message)
    return text


def positive_int(v: Any, max_value: Optional[int] = None) -> Optional[int]:
    """
    Entier strictement positif (et <= max_value si fourni) ou None.
    - accepte 3 et "3"; refuse 2.5, "2.5", True, 0, -1 et les chiffres non ASCII ("²", "٣")
    """
    if isinstance(v, bool):
        return None
    n: Optional[int] = None
    if isinstance(v, int):
        n = v
    elif isinstance(v, float) and v.is_integer():
        n = int(v)
    elif isinstance(v, str) and DIGITS_RE.match(v.strip()):
        n = int(v.strip())
    if n is None or n < 1:
        return None
    if max_value is not None and n > max_value:
        return None
    return n


def is_uuid(v: Any) -> bool:
    """Identifiant de ligne (colonnes uuid): tout autre texte serait rejeté par Postgres (22P02)."""
    if not isinstance(v, str):
        return False
    try:
        uuid.UUID(v)
    except ValueError:
        return False
    return True


def optional_text(v: Any) -> Optional[str]:
    text = str(v).strip() if v is not None else ""
    return text or None


async def read_json(request: Request) -> Dict[str, Any]:
    """Corps JSON objet obligatoire, sinon ValidationError (400)."""
    try:
        body = await request.json()
    except ValueError:
        raise ValidationError("Invalid JSON body.")
    if not isinstance(body, dict):
        raise ValidationError("Invalid JSON body.")
    return body
