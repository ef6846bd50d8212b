# app/utils/get_caller.py
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from fastapi import Header
from starlette.requests import Request

from app.core.exceptions import UnauthorizedError
from app.core.security import decode_token

ROLES = ("customer", "distributor", "admin")


@dataclass(frozen=True)
class CallerContext:
    role: str
    id: int

    @property
    def is_customer(self) -> bool:
        return self.role == "customer"

    @property
    def is_distributor(self) -> bool:
        return self.role == "distributor"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


# --------------------------
# Claim lookup strategies, tried in order
# --------------------------
def _role_scoped_id(claims: dict, role: str):
    return claims.get(f"{role}_id")


def _user_id(claims: dict, role: str):
    return claims.get("user_id")


def _subject(claims: dict, role: str):
    return claims.get("sub")


ID_LOOKUP_STRATEGIES: Sequence[Callable[[dict, str], object]] = (
    _role_scoped_id,
    _user_id,
    _subject,
)


def _as_int(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def resolve_caller(claims: dict, strategies=ID_LOOKUP_STRATEGIES) -> CallerContext:
    """Turn decoded token claims into a CallerContext.

    The role claim is mandatory. The id is taken from the first strategy that
    yields an integer; claims no strategy resolves are rejected.
    """
    role = str(claims.get("role") or "").lower()
    if role not in ROLES:
        raise UnauthorizedError("Token does not carry a valid role")

    for strategy in strategies:
        caller_id = _as_int(strategy(claims, role))
        if caller_id is not None:
            return CallerContext(role=role, id=caller_id)

    raise UnauthorizedError("Unable to resolve caller identity from token")


async def get_caller_context(
    request: Request,
    token: str | None = Header(default=None),
    authorization: str | None = Header(default=None),
) -> CallerContext:
    # Support either header
    raw_token = token
    if not raw_token and authorization and authorization.startswith("Bearer "):
        raw_token = authorization.split("Bearer ", 1)[1].strip()

    if not raw_token:
        raise UnauthorizedError("Missing access token")

    try:
        claims = decode_token(raw_token)
    except ValueError:
        raise UnauthorizedError("Invalid or expired token")

    caller = resolve_caller(claims)
    request.state.caller = caller
    return caller
