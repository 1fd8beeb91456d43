"""Route-level authorization against the static permission table.

Usage in endpoints::

    @router.post("/adjust")
    def adjust(
        body: StockAdjustmentCreate,
        db: Session = Depends(get_db),
        current_user: User = Depends(
            require_permission(Resource.INVENTORY, Action.UPDATE)
        ),
    ):
        ...
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Depends, HTTPException, status

from backend.app.api.deps import get_current_user
from backend.app.core.permissions import Action, Resource, has_permission
from backend.app.models.user import User


def require_permission(resource: Resource, action: Action) -> Callable[..., User]:
    """FastAPI dependency factory: authenticated user allowed *action* on *resource*.

    Returns the ``User`` so the endpoint can record who acted.
    """

    def _checker(current_user: User = Depends(get_current_user)) -> User:
        if not has_permission(current_user.role, resource, action):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"You don't have permission to {action.value} {resource.value}",
            )
        return current_user

    return _checker
