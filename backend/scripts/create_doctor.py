"""
Create Doctor Account
=====================
Creates a verified doctor account with a temporary password, optionally on
the premium plan. Useful for seeding a fresh environment without going
through registration and email verification.

Usage (after `pip install -e .`, with DATABASE_URL set):
    python backend/scripts/create_doctor.py --email ana@clinica.com.br --slug dra-ana
    python backend/scripts/create_doctor.py --email ana@clinica.com.br --slug dra-ana --name "Dra. Ana Souza" --premium-days 30
    python backend/scripts/create_doctor.py --email ana@clinica.com.br --slug dra-ana --init-db

Flags:
    --email         EMAIL  (required) Login email
    --slug          SLUG   (required) Public slug used in page and indication URLs
    --name          NAME   (optional) Display name. If omitted, derived from email.
    --specialty     TEXT   (optional) Medical specialty
    --premium-days  DAYS   (optional) Put the account on the premium plan for DAYS days
    --init-db              Create missing tables before inserting
"""

import argparse
import secrets
import sys
from datetime import timedelta

from med1.core.config import settings
from med1.core.database import SessionLocal, init_db, utcnow
from med1.core.security import hash_password
from med1.models.user import User, UserPlan


def generate_temp_password() -> str:
    """Readable temporary password (12 chars URL-safe)."""
    return secrets.token_urlsafe(9)


def name_from_email(email: str) -> str:
    """
    Derive a display name from the email local part.

        ana.souza@clinica.com.br -> "Ana Souza"
        ana@clinica.com.br       -> "Ana"
    """
    local = email.split("@")[0]
    return " ".join(part.capitalize() for part in local.replace("_", ".").split(".") if part)


def main():
    parser = argparse.ArgumentParser(description="Create a verified MED1 doctor account.")
    parser.add_argument("--email", required=True, help="Login email (required)")
    parser.add_argument("--slug", required=True, help="Public slug (required)")
    parser.add_argument("--name", default=None, help="Display name; derived from the email when omitted")
    parser.add_argument("--specialty", default=None, help="Medical specialty")
    parser.add_argument("--premium-days", type=int, default=0, help="Days of premium plan to grant")
    parser.add_argument("--init-db", action="store_true", help="Create missing tables first")
    args = parser.parse_args()

    email = args.email.strip().lower()
    slug = args.slug.strip().lower()
    name = args.name.strip() if args.name else name_from_email(email)

    print("=" * 60)
    print("  CREATE DOCTOR ACCOUNT")
    print("=" * 60)
    print()

    if args.init_db:
        print("0. Creating tables...")
        init_db()
        print("  [OK] Schema ready")

    print(f"1. Connecting to {settings.database_url.split('@')[-1]}...")
    db = SessionLocal()
    try:
        taken = db.query(User).filter((User.email == email) | (User.slug == slug)).first()
        if taken:
            print(f"  [FAIL] Email or slug already in use by {taken.email} ({taken.slug})")
            sys.exit(1)

        temp_password = generate_temp_password()
        user = User(
            name=name,
            email=email,
            slug=slug,
            specialty=args.specialty,
            password_hash=hash_password(temp_password),
            email_verified_at=utcnow(),
        )
        if args.premium_days > 0:
            user.plan = UserPlan.PREMIUM
            user.plan_expires_at = utcnow() + timedelta(days=args.premium_days)

        print("\n2. Creating account...")
        db.add(user)
        db.commit()
        print(f"  [OK] Doctor created (ID: {user.id})")
    except SystemExit:
        raise
    except Exception as e:
        db.rollback()
        print(f"  [FAIL] Failed to create doctor: {e}")
        sys.exit(1)
    finally:
        db.close()

    print()
    print("=" * 60)
    print("  SETUP COMPLETE!")
    print("=" * 60)
    print()
    print(f"  Login URL:    {settings.frontend_url}")
    print(f"  Email:        {email}")
    print(f"  Temp PW:      {temp_password}")
    print(f"  Public page:  {settings.frontend_url}/{slug}")
    if args.premium_days > 0:
        print(f"  Plan:         premium for {args.premium_days} days")
    print()
    print("  NEXT STEP: log in and change the password via 'forgot password'.")
    print()


if __name__ == "__main__":
    main()
