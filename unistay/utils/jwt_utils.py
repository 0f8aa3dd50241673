from jose import jwt
from jose.exceptions import JWTError, ExpiredSignatureError
from datetime import datetime, timedelta, timezone
from typing import Optional
import os
from fastapi import HTTPException, Depends, Cookie
from fastapi.security import OAuth2PasswordBearer
from pydantic import BaseModel

SECRET_KEY = os.getenv("SECRET_KEY")
ALGORITHM = "HS256"
# Tokens are issued by the hosted auth provider; there is no local token endpoint.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


class CurrentUser(BaseModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    image_url: Optional[str] = None


def create_access_token(user_id: str, email: str = None, name: str = None, expires_delta: timedelta = None) -> str:
    payload = {
        "sub": user_id,
        "email": email,
        "name": name,
    }

    # Only add expiration if explicitly requested
    if expires_delta:
        payload["exp"] = datetime.now(timezone.utc) + expires_delta

    if not SECRET_KEY:
        raise ValueError("SECRET_KEY is not set")
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> CurrentUser:
    if not SECRET_KEY:
        raise HTTPException(status_code=500, detail="Authentication is not configured")
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM], options={"verify_aud": False})
    except ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired")
    except JWTError:
        raise HTTPException(status_code=401, detail="Could not validate credentials")

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Could not validate credentials")
    metadata = payload.get("user_metadata") or {}
    return CurrentUser(
        id=str(user_id),
        email=payload.get("email"),
        name=payload.get("name") or metadata.get("name"),
        image_url=payload.get("picture") or metadata.get("avatar_url"),
    )


# Dependency to get user from cookie, falling back to a bearer header
def get_user_from_cookie(
    access_token: Optional[str] = Cookie(None),
    bearer_token: Optional[str] = Depends(oauth2_scheme),
) -> CurrentUser:
    token = access_token or bearer_token
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return decode_access_token(token)
