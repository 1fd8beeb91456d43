from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from backend.app.api.deps import get_current_user
from backend.app.core.database import get_db
from backend.app.core.permissions import Resource, get_allowed_actions
from backend.app.core.security import create_access_token, verify_password
from backend.app.models.user import User
from backend.app.schemas.auth import Token, UserPermissionsOut
from backend.app.schemas.common import ApiResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login/access-token", response_model=Token)
def login_access_token(
    db: Session = Depends(get_db),
    form_data: OAuth2PasswordRequestForm = Depends(),
) -> Token:
    user = db.query(User).filter(User.username == form_data.username).first()

    if not user or not verify_password(form_data.password, user.hashed_password):
        logger.warning("Failed login for %r", form_data.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user"
        )

    return Token(access_token=create_access_token(str(user.id), role=user.role.value))


@router.get("/me/permissions", response_model=ApiResponse[UserPermissionsOut])
def my_permissions(
    current_user: User = Depends(get_current_user),
) -> ApiResponse[UserPermissionsOut]:
    """Resource → allowed actions for the caller, for gating UI elements."""
    permissions = {
        resource.value: [a.value for a in actions]
        for resource in Resource
        if (actions := get_allowed_actions(current_user.role, resource))
    }
    return ApiResponse[UserPermissionsOut](
        data=UserPermissionsOut(
            user_id=current_user.id,
            username=current_user.username,
            role=current_user.role.value,
            permissions=permissions,
        )
    )
