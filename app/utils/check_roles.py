# app/utils/check_roles.py
from typing import Callable
from functools import wraps

from app.core.exceptions import ForbiddenError, UnauthorizedError


def require_role(roles: list[str]):
    """Decorator to validate the caller role; expects _caller to be passed by route."""
    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(*args, _caller, **kwargs):
            if _caller is None:
                raise UnauthorizedError("Caller not authenticated")
            if _caller.role.lower() not in [r.lower() for r in roles]:
                raise ForbiddenError(f"Role '{_caller.role}' is not allowed to perform this action")
            return await func(*args, _caller=_caller, **kwargs)
        return wrapper
    return decorator
