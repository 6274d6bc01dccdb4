"""
Authentication utilities for extracting the session token and caller identity
from API Gateway events.
"""
from dataclasses import dataclass
from http.cookies import CookieError, SimpleCookie
from typing import Optional

from .config import config
from .logging import logger
from .tokens import Claims, TokenCodec

INTERNAL_SERVICE_HEADER = 'x-internal-service'
INTERNAL_WALLET_HEADER = 'x-wallet-address'


@dataclass(frozen=True)
class CallerIdentity:
    """
    Who is calling, as far as the internal linkage path is concerned.

    internal_wallet comes straight from a request header and is NOT verified.
    """
    subject_id: Optional[str] = None
    internal_wallet: Optional[str] = None


def get_header(event: dict, name: str) -> Optional[str]:
    """Case-insensitive header lookup."""
    headers = event.get('headers') or {}
    name = name.lower()
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


def get_bearer_token(event: dict) -> Optional[str]:
    """Extract token from an `Authorization: Bearer <token>` header."""
    value = get_header(event, 'authorization')
    if not value:
        return None
    scheme, _, token = value.strip().partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        return None
    return token.strip()


def get_cookie_token(event: dict, cookie_name: Optional[str] = None) -> Optional[str]:
    """
    Extract token from the session cookie.
    Handles both the REST API `Cookie` header and the HTTP API `cookies` list.
    """
    cookie_name = cookie_name or config.SESSION_COOKIE_NAME
    raw_cookies = list(event.get('cookies') or [])
    header = get_header(event, 'cookie')
    if header:
        raw_cookies.append(header)

    for raw in raw_cookies:
        jar = SimpleCookie()
        try:
            jar.load(raw)
        except CookieError:
            logger.warning("Ignoring malformed Cookie header")
            continue
        morsel = jar.get(cookie_name)
        if morsel and morsel.value:
            return morsel.value
    return None


def get_token(event: dict) -> Optional[str]:
    """Bearer header wins over the cookie when both are present."""
    return get_bearer_token(event) or get_cookie_token(event)


def get_claims(event: dict, codec: TokenCodec) -> Optional[Claims]:
    """
    Verify the caller's token.

    Returns:
        Claims, or None when no token was presented

    Raises:
        InvalidTokenError: a token was presented but failed verification
    """
    token = get_token(event)
    if token is None:
        return None
    return codec.verify(token)


def get_caller_identity(event: dict, claims: Optional[Claims]) -> CallerIdentity:
    """Combine the verified subject with the internal-service wallet header, if any."""
    internal_wallet = None
    flag = get_header(event, INTERNAL_SERVICE_HEADER)
    if flag and flag.strip().lower() == 'true':
        internal_wallet = get_header(event, INTERNAL_WALLET_HEADER) or None

    return CallerIdentity(
        subject_id=claims.subject_id if claims else None,
        internal_wallet=internal_wallet,
    )
