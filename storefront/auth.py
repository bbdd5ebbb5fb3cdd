from datetime import timedelta
from typing import List, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from . import models, schemas, database, crud
from .models import UserRole, utcnow
from .core.config import settings
from .security import verify_password

SECRET_KEY = settings.SECRET_KEY
ALGORITHM = settings.ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/token")
# Same scheme, but anonymous requests are let through (catalog pages are public).
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/token", auto_error=False)


def create_access_token(data: dict, expires_delta: timedelta | None = None):
    """Create a new signed JWT."""
    to_encode = data.copy()
    if expires_delta:
        expire = utcnow() + expires_delta
    else:
        expire = utcnow() + timedelta(minutes=15)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


def authenticate_user(db: Session, *, email: str, password: str) -> Optional[models.User]:
    user = crud.user.get_by_email(db, email=email)
    if not user or not verify_password(password, user.hashed_password):
        return None
    return user


def _user_from_token(db: Session, token: str) -> Optional[models.User]:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
    email: str = payload.get("sub")
    if email is None:
        return None
    token_data = schemas.TokenData(email=email)
    return crud.user.get_by_email(db, email=token_data.email)


# --- Dependencies ---

async def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(database.get_db)):
    """
    Validate the bearer token and return the user it belongs to.
    Used to protect endpoints.
    """
    user = _user_from_token(db, token)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_optional_user(
    token: Optional[str] = Depends(optional_oauth2_scheme), db: Session = Depends(database.get_db)
) -> Optional[models.User]:
    """Like `get_current_user`, but returns None for anonymous or invalid tokens."""
    if not token:
        return None
    return _user_from_token(db, token)


def require_role(required_roles: List[UserRole]):
    """
    Dependency factory: the returned dependency requires the current user
    to hold one of `required_roles`.
    """
    def role_checker(current_user: models.User = Depends(get_current_user)):
        if current_user.role not in required_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"User does not have the required privileges. Allowed roles: {[role.value for role in required_roles]}"
            )
        return current_user
    return role_checker


require_admin_user = require_role([UserRole.ADMIN])
