# crux/deps/auth.py
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from jose.exceptions import ExpiredSignatureError, JWTError

from crux.db import get_db
from crux.errors import Unauthorized
from crux.models import User
from crux.security import decode_token

# Exposes Bearer auth in Swagger; login endpoint issues the token
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

def get_current_user(
    db: Session = Depends(get_db),
    token: str = Depends(oauth2_scheme),
) -> User:
    try:
        payload = decode_token(token)
        sub = payload.get("sub")
        if sub is None:
            raise Unauthorized("Not authenticated")
        user = db.get(User, int(sub))
    except ExpiredSignatureError:
        raise Unauthorized("Token expired")
    except (JWTError, ValueError):
        raise Unauthorized("Not authenticated")

    if not user:
        raise Unauthorized("Not authenticated")
    return user
