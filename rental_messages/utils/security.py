from typing import Any, Dict

from jose import jwt

from rental_messages.config import JWT_ALGORITHM, JWT_SECRET_KEY


def decode_access_token(token: str) -> Dict[str, Any]:
    """Raises jose.JWTError when the token is invalid or expired."""
    return jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
