from __future__ import annotations

import argparse
import asyncio
import getpass
import sys
from uuid import uuid4

from asperda.domain.enums import UserRole, normalize_role
from asperda.domain.models import Company, Profile
from asperda.persistence.db import SessionLocal
from asperda.persistence.store import RecordStore
from asperda.services.auth.passwords import hash_password
from asperda.services.auth.sessions import validate_password


_ADMIN_ROLES = {UserRole.SUPER_ADMIN, UserRole.DPC_ADMIN}


def _build_parser() -> argparse.ArgumentParser:
    # Association admins are never self-registered; provision them from the shell.
    parser = argparse.ArgumentParser(description="Create an association administrator")
    parser.add_argument("--email", required=True, help="Login email")
    parser.add_argument("--full-name", required=True, help="Display name")
    parser.add_argument("--role", default="super_admin", help="Role: super_admin|dpc_admin")
    parser.add_argument(
        "--company-id",
        default=None,
        help="Company whose DPC region a dpc_admin manages (required for dpc_admin)",
    )
    parser.add_argument("--password", default=None, help="Password (prompted when omitted)")
    return parser


async def _create_admin(args: argparse.Namespace) -> int:
    role = normalize_role(args.role)
    if role not in _ADMIN_ROLES:
        raise ValueError("Role must be super_admin or dpc_admin")
    if role is UserRole.DPC_ADMIN and not args.company_id:
        raise ValueError("dpc_admin requires --company-id")
    password = args.password or getpass.getpass("Password: ")
    validate_password(password)
    email = args.email.strip().lower()

    async with SessionLocal() as session:
        store = RecordStore(session)
        if await store.select(Profile, Profile.email == email, limit=1):
            raise ValueError(f"Email already registered: {email}")
        if args.company_id and await store.get(Company, args.company_id) is None:
            raise ValueError(f"Unknown company: {args.company_id}")
        profile = await store.insert(
            Profile(
                id=uuid4().hex,
                email=email,
                full_name=args.full_name.strip(),
                role=role.value,
                company_id=args.company_id,
                password_hash=hash_password(password),
            )
        )

    print("Administrator created:")
    print(f"  profile_id: {profile.id}")
    print(f"  email: {profile.email}")
    print(f"  role: {profile.role}")
    return 0


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()
    try:
        return asyncio.run(_create_admin(args))
    except Exception as exc:  # noqa: BLE001 - surface provisioning failures clearly
        print(f"create_admin failed: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
