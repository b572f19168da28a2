from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Header, HTTPException
from jose import JWTError, jwt
from passlib.context import CryptContext

from .config import ACCESS_MIN, JWT_ALGORITHM, JWT_AUDIENCE, JWT_ISSUER, JWT_SECRET

pwd = CryptContext(schemes=["bcrypt"], deprecated="auto")


def create_token(sub: str, email: Optional[str] = None) -> str:
    exp = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_MIN)
    claims = {"sub": str(sub), "exp": exp, "iss": JWT_ISSUER, "aud": JWT_AUDIENCE}
    if email:
        claims["email"] = email
    return jwt.encode(claims, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> int:
    payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM],
                         audience=JWT_AUDIENCE, issuer=JWT_ISSUER)
    return int(payload["sub"])


def get_user(auth: Optional[str] = Header(default=None, alias="Authorization")) -> int:
    if not auth or not auth.lower().startswith("bearer "):
        raise HTTPException(401, "Missing token")
    token = auth.split(" ", 1)[1]
    try:
        return decode_token(token)
    except (JWTError, KeyError, ValueError):
        raise HTTPException(401, "Invalid token")
