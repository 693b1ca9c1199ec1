from enum import Enum

from fastapi import Depends, HTTPException

from teamclock.deps.auth import CurrentUser, require_auth


class Role(Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"


def require_role(*roles: Role):
    """Dependency factory: the caller's role must be one of ``roles``."""
    allowed = {r.value for r in roles}

    def dependency(current: CurrentUser = Depends(require_auth)) -> CurrentUser:
        try:
            Role(current.role)
        except ValueError as exc:
            raise HTTPException(status_code=403, detail="Invalid role claim") from exc

        if current.role not in allowed:
            raise HTTPException(status_code=403, detail="Insufficient role")

        return current

    return dependency
