#!/usr/bin/env python3
from __future__ import annotations

from getpass import getpass

from inkwell.auth.users import EmailAlreadyUsed, create_user
from inkwell.config import get_settings
from inkwell.db import init_db, make_engine, make_session_factory
from inkwell.forms import check_password_policy
from inkwell.models import Role


def main() -> None:
    engine = make_engine(get_settings().database_url)
    init_db(engine)

    email = input("Email: ").strip()
    name = input("Name: ").strip()
    role_in = (input("Role [user/admin]: ").strip().upper() or "USER")
    try:
        role = Role(role_in)
    except ValueError:
        raise SystemExit(f"Unknown role: {role_in}")

    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("Passwords don't match")
    try:
        check_password_policy(pw1)
    except ValueError as e:
        raise SystemExit(str(e))

    db = make_session_factory(engine)()
    try:
        user = create_user(db, email=email, name=name, password=pw1, role=role)
    except EmailAlreadyUsed:
        raise SystemExit(f"Email already in use: {email}")
    finally:
        db.close()
    print(f"OK -> {user.id} <{user.email}>")


if __name__ == "__main__":
    main()
