from enum import Enum

from fastapi import Depends, HTTPException

from timecard.deps.auth import Caller, require_auth


class Role(Enum):
    EMPLOYEE = "employee"
    EMPLOYER = "employer"


def require_role(role: Role):
    """Single capability check per operation: the caller's role must match exactly."""

    def dependency(caller: Caller = Depends(require_auth)) -> Caller:
        try:
            caller_role = Role(caller.role)
        except ValueError as exc:
            raise HTTPException(status_code=403, detail="Invalid role claim") from exc

        if caller_role is not role:
            raise HTTPException(
                status_code=403,
                detail=f"Operation requires the {role.value} role",
            )

        return caller

    return dependency
