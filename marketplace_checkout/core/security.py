# marketplace_checkout/core/security.py
from datetime import datetime, timedelta
from typing import Optional

from jose import jwt, JWTError

from marketplace_checkout.core.config import settings
from marketplace_checkout.schemas.user import TokenData


# Create Access Token
def create_access_token(data: dict, expires_minutes: Optional[int] = None) -> str:
    payload = dict(data)
    if "sub" in payload:
        payload["sub"] = str(payload["sub"])
    expire = datetime.utcnow() + timedelta(
        minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    payload.update({"exp": expire})
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


# Base decode
def _decode_raw(token: str):
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None


# Decode Access Token
def decode_access_token(token: str) -> TokenData:
    payload = _decode_raw(token)
    if not payload:
        return TokenData()

    sub = payload.get("sub")
    try:
        user_id = int(sub) if sub is not None else None
    except (TypeError, ValueError):
        user_id = None
    return TokenData(user_id=user_id, role=payload.get("role"))
