import os
from typing import Any

import jwt

ALGORITHM = "HS256"
TOKEN_TYPE_ACCESS = "access"


def _jwt_secret() -> str:
    return os.getenv("JWT_SECRET_KEY", "change-me-in-production")


def decode_token(token: str, *, expected_type: str | None = None) -> dict[str, Any]:
    """Verify a token issued by the account service, which signs with the same secret."""
    payload = jwt.decode(token, _jwt_secret(), algorithms=[ALGORITHM])
    token_type = str(payload.get("tokenType", ""))
    if expected_type and token_type != expected_type:
        raise jwt.InvalidTokenError("Unexpected token type")
    return payload
