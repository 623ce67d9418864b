from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.core import security
from app.core.config import settings
from app.db.session import get_db
from app.modules.user_management.models.user import User
from app.modules.user_management.services.user import get_user

# Tokens come from the external identity provider; tokenUrl only documents the flow
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/token")

def get_token_subject(token: str = Depends(oauth2_scheme)) -> str:
    """
    Dependency returning the authenticated identity (the token's subject)
    """
    user_id = security.verify_access_token(token)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Could not validate credentials",
        )
    return user_id

def get_current_user(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_token_subject),
) -> User:
    """
    Dependency for getting the current user's profile
    """
    user = get_user(db, user_id=user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user
