"""Share token generation and format validation."""
import re
import secrets

SHARE_TOKEN_BYTES = 32
SHARE_TOKEN_LENGTH = SHARE_TOKEN_BYTES * 2

_SHARE_TOKEN_RE = re.compile(r"[0-9a-f]{64}", re.IGNORECASE)
_SLUG_STRIP_RE = re.compile(r"[^a-z0-9]+")


def generate_share_token() -> str:
    """
    Generate a public share token.

    Returns:
        64 lowercase hex characters (256 bits from the OS CSPRNG). Uniqueness
        is not checked against existing tokens.
    """
    return secrets.token_hex(SHARE_TOKEN_BYTES)


def is_valid_share_token(value: str) -> bool:
    """Return True if value has the exact shape of a share token (hex, any case)."""
    return isinstance(value, str) and _SHARE_TOKEN_RE.fullmatch(value) is not None


def slugify(text: str | None, fallback: str = "item") -> str:
    """
    Build a URL slug from free text.

    Lowercases, collapses every run of non-alphanumerics into a single
    hyphen and trims hyphens from both ends. Returns ``fallback`` when
    nothing is left.
    """
    slug = _SLUG_STRIP_RE.sub("-", (text or "").lower()).strip("-")
    return slug or fallback
