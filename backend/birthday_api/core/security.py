from typing import Any
import jwt

from birthday_api.core.config import settings

def decode_access_token(token: str) -> dict[str, Any]:
    """Decode an access token issued by the auth service (sub=email, roles=[...]).
    Raises jwt.PyJWTError if invalid and returns the payload as a dict.
    """
    payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    return payload
