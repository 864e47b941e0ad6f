from typing import List, Tuple
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
import jwt

from birthday_api.core.security import decode_access_token
from birthday_api.db.session import get_db
from birthday_api.models.user import User
from birthday_api.services.reminder_scheduler import ReminderScheduler

# Tokens are issued by the external auth service
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

def get_current_identity(token: str = Depends(oauth2_scheme)) -> Tuple[str, List[str]]:
    """Return (email, roles) from the JWT token."""
    try:
        payload = decode_access_token(token)
    except jwt.PyJWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    sub = payload.get("sub")
    if not sub:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    roles = payload.get("roles") or []
    if not isinstance(roles, list):
        roles = [roles]
    return sub.lower(), roles

def get_current_user(db: Session = Depends(get_db), identity=Depends(get_current_identity)) -> User:
    email, _roles = identity
    user = db.query(User).filter(User.email == email).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user")
    return user

def require_roles(*allowed: str):
    def checker(identity=Depends(get_current_identity)):
        _email, roles = identity
        if not any(r in roles for r in allowed):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return checker

def get_scheduler(request: Request) -> ReminderScheduler:
    scheduler = getattr(request.app.state, "reminder_scheduler", None)
    if scheduler is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Reminder scheduler is not configured")
    return scheduler
