"""
Create tables and seed the single admin account.

Usage:
  python scripts/init_db.py            # create_all + seed
  ADMIN_USERNAME=... ADMIN_EMAIL=... ADMIN_PASSWORD=... python scripts/init_db.py
"""
import os
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.consultancy.models import Base, User  # noqa: E402
from app.consultancy.users import create_user  # noqa: E402
from scripts._db_utils import create_script_engine, script_session  # noqa: E402


def _db_url(database_url: str | None) -> str:
    from app.consultancy.config import _normalize_db_url

    return _normalize_db_url((database_url or os.environ.get("DATABASE_URL") or "sqlite:///consultancy.db").strip())


def seed_only(*, database_url: str | None = None) -> User | None:
    """
    Seed the admin user if ADMIN_USERNAME/ADMIN_EMAIL/ADMIN_PASSWORD are set.
    Does NOT overwrite an existing admin user's password.
    """
    username = (os.environ.get("ADMIN_USERNAME") or "").strip()
    email = (os.environ.get("ADMIN_EMAIL") or "").strip().lower()
    password = os.environ.get("ADMIN_PASSWORD") or ""
    if not (username and email and password):
        print("ADMIN_USERNAME/ADMIN_EMAIL/ADMIN_PASSWORD not all set; skipping admin seed.", flush=True)
        return None

    with script_session(_db_url(database_url)) as s:
        existing = s.query(User).filter((User.username == username) | (User.email == email)).first()
        if existing:
            print(f"Admin user '{existing.username}' already exists; leaving it unchanged.", flush=True)
            return existing
        u = create_user(s, username=username, email=email, password=password)
        print(f"Created admin user '{username}'.", flush=True)
        return u


def main() -> None:
    db_url = _db_url(None)
    engine = create_script_engine(db_url)
    Base.metadata.create_all(engine)
    engine.dispose()
    print("Tables created.", flush=True)
    seed_only(database_url=db_url)


if __name__ == "__main__":
    main()
