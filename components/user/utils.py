from datetime import timedelta

from components.core import config
from components.core.security import create_access_token
from components.user import models
from components.user import schemas
settings = config.get_settings()

def create_jwt_token_payload_from_user(user: models.User) -> dict:
    """Claims carried in the access token."""
    return {"sub": str(user.id), "email": user.email}

def user_with_token(user: models.User) -> schemas.UserWithToken:
    """Build the auth response for a freshly registered or logged in user."""
    access_token = create_access_token(
        data=create_jwt_token_payload_from_user(user),
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    return schemas.UserWithToken(
        **schemas.User.model_validate(user).model_dump(),
        access_token=access_token,
    )
