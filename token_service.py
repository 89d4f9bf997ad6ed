import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from errors import InvalidToken

logger = logging.getLogger(__name__)


class TokenService:
    """
    Issues and verifies signed, self-contained access tokens (JWT).

    Tokens are not stored anywhere; a token is valid as long as the signature matches
    and it has not expired.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", ttl: timedelta = timedelta(days=7)):
        if not secret_key:
            raise ValueError("secret_key must not be empty")
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.ttl = ttl

    def issue(self, user_id: int, now: Optional[datetime] = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "user_id": user_id,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self.ttl).timestamp()),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> int:
        """
        Return the user id carried by ``token``.

        Raises:
            InvalidToken: bad signature, malformed token, missing claims or expired.
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            logger.debug("Token rejected: %s", e)
            raise InvalidToken()

        user_id = payload.get("user_id")
        # bool ist auch ein int
        if not isinstance(user_id, int) or isinstance(user_id, bool) or "exp" not in payload:
            logger.debug("Token rejected: missing or malformed claims")
            raise InvalidToken()
        return user_id
