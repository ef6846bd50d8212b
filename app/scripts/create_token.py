# app/scripts/create_token.py
"""Mint a development bearer token for a (role, id) pair.

    python -m app.scripts.create_token customer 1
"""
import argparse
from datetime import timedelta

from app.core.security import create_access_token
from app.utils.get_caller import ROLES


def mint_token(role: str, caller_id: int, minutes: int = None) -> str:
    if role not in ROLES:
        raise ValueError(f"Unknown role '{role}', expected one of {', '.join(ROLES)}")
    expires = timedelta(minutes=minutes) if minutes else None
    return create_access_token({"role": role, f"{role}_id": caller_id, "sub": str(caller_id)}, expires)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create a development access token")
    parser.add_argument("role", choices=ROLES)
    parser.add_argument("id", type=int)
    parser.add_argument("--minutes", type=int, default=None, help="token lifetime, defaults to ACCESS_TOKEN_EXPIRE_MINUTES")
    args = parser.parse_args(argv)
    print(mint_token(args.role, args.id, args.minutes))


if __name__ == "__main__":
    main()
