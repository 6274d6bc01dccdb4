"""
Stateless session tokens.

A token is a signed JWT carrying the caller's subject id, role and permission
strings. Nothing is stored server side: expiry is the only invalidation.

Two historical claim shapes are still in circulation and both verify:
    {"sub": "...", "role": "...", "permissions": [...]}       (issued here)
    {"user": {"id": "...", "role": "...", "permissions": [...]}}  (session cookie)
A bare top-level "id" is treated like "sub".
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional, Sequence, Tuple, Union

from jose import ExpiredSignatureError, JWTError, jwt

from .config import config
from .errors import EncodingError, InvalidTokenError
from .logging import logger
from .models import Role


@dataclass(frozen=True)
class Claims:
    """Normalized claim set of a verified token."""
    subject_id: str
    role: str = Role.USER
    permissions: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            'subjectId': self.subject_id,
            'role': self.role,
            'permissions': list(self.permissions),
        }


class TokenCodec:
    """Issues and verifies session tokens with a secret supplied at construction."""

    def __init__(self, secret: str, algorithm: str = 'HS256', default_ttl: int = 86400):
        self.secret = secret
        self.algorithm = algorithm
        self.default_ttl = default_ttl

    def issue(self, claims: Union[Claims, Mapping[str, Any]], ttl: Optional[int] = None) -> str:
        """
        Sign a claim set into a token.

        Args:
            claims: Claims instance or mapping with subjectId, role, permissions
            ttl: Lifetime in seconds (defaults to the codec's default_ttl)

        Returns:
            Encoded JWT string

        Raises:
            EncodingError: if the claims or ttl are malformed
        """
        if not self.secret:
            raise EncodingError('Token secret is not configured')

        if isinstance(claims, Claims):
            subject_id, role, permissions = claims.subject_id, claims.role, claims.permissions
        elif isinstance(claims, Mapping):
            subject_id = claims.get('subjectId', claims.get('subject_id'))
            role = claims.get('role', Role.USER)
            permissions = claims.get('permissions', ())
        else:
            raise EncodingError('Claims must be a mapping')

        if not isinstance(subject_id, str) or not subject_id:
            raise EncodingError('Claims must include a subjectId')
        if not isinstance(role, str) or not role:
            raise EncodingError('Role must be a non-empty string')
        if isinstance(permissions, (str, bytes)) or not isinstance(permissions, Sequence):
            raise EncodingError('Permissions must be a list of strings')
        if not all(isinstance(p, str) for p in permissions):
            raise EncodingError('Permissions must be a list of strings')

        ttl = self.default_ttl if ttl is None else ttl
        if not isinstance(ttl, int) or isinstance(ttl, bool) or ttl <= 0:
            raise EncodingError('Token ttl must be a positive number of seconds')

        issued_at = datetime.now(timezone.utc).replace(microsecond=0)
        payload = {
            'sub': subject_id,
            'role': role,
            'permissions': list(permissions),
            'iat': issued_at,
            'exp': issued_at + timedelta(seconds=ttl),
        }

        try:
            return jwt.encode(payload, self.secret, algorithm=self.algorithm)
        except JWTError as e:
            logger.error(f"Error encoding token for {subject_id}: {e}")
            raise EncodingError(str(e))

    def verify(self, token: str) -> Claims:
        """
        Verify a token and normalize its claims.

        Raises:
            InvalidTokenError: bad signature, malformed payload, expired, or no subject
        """
        if not token or not isinstance(token, str):
            raise InvalidTokenError('Missing token')

        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise InvalidTokenError('Token has expired')
        except JWTError as e:
            logger.warning(f"Token rejected: {e}")
            raise InvalidTokenError()

        if 'exp' not in payload:
            _check_legacy_expiry(payload.get('expires'))

        return normalize_claims(payload)


def normalize_claims(payload: Mapping[str, Any]) -> Claims:
    """Map either historical payload shape onto Claims."""
    source = payload
    subject_id = payload.get('sub') or payload.get('id')

    user = payload.get('user')
    if not subject_id and isinstance(user, Mapping):
        source = user
        subject_id = user.get('id') or user.get('sub')

    if not subject_id:
        raise InvalidTokenError('Token has no subject')

    role = source.get('role') or Role.USER
    permissions = source.get('permissions') or ()
    if isinstance(permissions, str) or not isinstance(permissions, Sequence):
        raise InvalidTokenError('Token permissions are malformed')

    return Claims(
        subject_id=str(subject_id),
        role=str(role),
        permissions=tuple(str(p) for p in permissions),
    )


def _check_legacy_expiry(expires: Any) -> None:
    """Session-cookie tokens carry an ISO `expires` string instead of `exp`."""
    if not isinstance(expires, str):
        raise InvalidTokenError('Token has no expiry')
    try:
        expires_at = datetime.fromisoformat(expires.replace('Z', '+00:00'))
    except ValueError:
        raise InvalidTokenError('Token expiry is malformed')
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    if expires_at <= datetime.now(timezone.utc):
        raise InvalidTokenError('Token has expired')


def get_token_codec() -> TokenCodec:
    """Build the codec from environment configuration."""
    return TokenCodec(
        secret=config.AUTH_SECRET,
        algorithm=config.TOKEN_ALGORITHM,
        default_ttl=config.TOKEN_TTL_SECONDS,
    )
