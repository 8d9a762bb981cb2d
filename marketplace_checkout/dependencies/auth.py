from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from marketplace_checkout.core.security import decode_access_token
from marketplace_checkout.database.connection import get_db
from marketplace_checkout.models.customer import Customer
from marketplace_checkout.schemas.user import TokenData

# tokens are issued by the auth service; this app only verifies them
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def _credentials_error(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_token_data(token: str = Depends(oauth2_scheme)) -> TokenData:
    token_data = decode_access_token(token)
    if token_data.user_id is None:
        raise _credentials_error("Could not validate credentials")
    return token_data


def get_current_user(
    token_data: TokenData = Depends(get_token_data),
    db: Session = Depends(get_db),
) -> Customer:
    user = db.get(Customer, token_data.user_id)
    if not user:
        raise _credentials_error("User not found")
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inactive user",
        )
    return user


def require_auth(user: Customer = Depends(get_current_user)) -> Customer:
    return user


def require_admin(token_data: TokenData = Depends(get_token_data)) -> TokenData:
    if token_data.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return token_data
