"""
services.user_service - Accounts: signup, login, lookup, bulk get-or-create.

All session management is the caller's responsibility (open before,
close/commit after).
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

import config
from db.models import User
from db.store import register_function

logger = logging.getLogger(__name__)


class UserExistsError(Exception):
    """Raised on signup with an email that is already registered."""
    pass


def normalize_email(email: str | None) -> str:
    return str(email or "").strip().lower()


class UserService:

    # ── Read ───────────────────────────────────────────────────────────

    @staticmethod
    def get(session: Session, user_id: str) -> User | None:
        return session.get(User, user_id)

    @staticmethod
    def get_by_email(session: Session, email: str) -> User | None:
        email = normalize_email(email)
        return session.scalars(
            select(User).where(func.lower(User.email) == email)
        ).first()

    @staticmethod
    def list_by_role(session: Session, role: str) -> list[User]:
        # secondary roles are stored in the JSON list; filter those in Python
        users = session.scalars(select(User).order_by(User.email)).all()
        return [u for u in users if role in u.all_roles()]

    # ── Create ─────────────────────────────────────────────────────────

    @staticmethod
    def signup(session: Session, email: str, password: str, role: str,
               name: str = "") -> User:
        """
        Register an account.  An account created earlier by an import (no
        password yet) is claimed instead of duplicated, but only under a
        role the import gave it.
        """
        if role not in config.ROLES:
            raise ValueError(f"Unknown role '{role}'")
        email = normalize_email(email)

        user = UserService.get_by_email(session, email)
        if user is not None and (user.password_hash or role not in user.all_roles()):
            raise UserExistsError("User already exists")

        if user is None:
            user = User(email=email, name=name or email.split("@")[0],
                        role=role, roles=[role])
            session.add(user)
        elif name:
            user.name = name
        user.password_hash = generate_password_hash(password)
        session.flush()
        logger.info("Signed up %s as %s", email, role)
        return user

    @staticmethod
    def authenticate(session: Session, email: str, password: str) -> User | None:
        user = UserService.get_by_email(session, email)
        if user is None or not user.password_hash:
            return None
        if not check_password_hash(user.password_hash, password):
            return None
        return user

    @staticmethod
    def get_or_create(session: Session, email: str, name: str = "",
                      role: str = "mentee") -> tuple[User, bool]:
        """Return (user, created)."""
        email = normalize_email(email)
        user = UserService.get_by_email(session, email)
        if user is not None:
            return user, False
        user = User(email=email, name=name or email.split("@")[0], role=role, roles=[role])
        session.add(user)
        session.flush()
        return user, True

    @staticmethod
    def add_role(session: Session, user: User, role: str) -> User:
        if role not in config.ROLES:
            raise ValueError(f"Unknown role '{role}'")
        roles = user.all_roles()
        if role not in roles:
            user.roles = roles + [role]
            session.flush()
        return user


@register_function("bulk-create-users")
def bulk_create_users(session: Session, payload: dict) -> dict:
    """
    Get-or-create every user in ``payload["users"]`` (dicts with email,
    name, role), de-duplicated by lowercased email.  A new account takes
    the first role seen for its email as primary role; every role named
    for an email is granted, to new and existing accounts alike.

    Returns ``{created, existing, errors, map}`` where ``map`` is
    email → {id, email, name}.
    """
    users = payload.get("users")
    if not isinstance(users, list):
        raise ValueError("Invalid payload: 'users' must be a list")

    uniq: dict[str, dict] = {}
    roles: dict[str, list[str]] = {}
    for u in users:
        email = normalize_email((u or {}).get("email"))
        if not email:
            continue
        uniq.setdefault(email, u)
        role = u.get("role") if u.get("role") in config.ROLES else "mentee"
        if role not in roles.setdefault(email, []):
            roles[email].append(role)

    out: dict = {"created": [], "existing": [], "errors": [], "map": {}}
    for email, u in uniq.items():
        try:
            with session.begin_nested():
                user, created = UserService.get_or_create(
                    session, email, name=u.get("name") or "", role=roles[email][0],
                )
                for role in roles[email]:
                    UserService.add_role(session, user, role)
        except IntegrityError as exc:
            out["errors"].append(f"create failed for {email}: {exc.orig}")
            continue
        entry = {"id": user.id, "email": user.email}
        (out["created"] if created else out["existing"]).append(entry)
        out["map"][email] = {"id": user.id, "email": user.email, "name": user.name or ""}

    return out
