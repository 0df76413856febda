"""
Apply migrations and seed the admin from ADMIN_* variables.

DATABASE_URL is required. An existing admin is left as is.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _require_env(name: str) -> str:
    v = (os.environ.get(name) or "").strip()
    if not v:
        raise RuntimeError(f"Missing required environment variable {name}.")
    return v


def run_release() -> None:
    from app.consultancy.config import _normalize_db_url

    db_url = _normalize_db_url(_require_env("DATABASE_URL"))
    env = (os.environ.get("ENV") or "").strip().lower()
    if env in ("prod", "production") and db_url.startswith("sqlite"):
        raise RuntimeError("Refusing to run release on sqlite DATABASE_URL in production. Set DATABASE_URL to Postgres.")

    print("Release: starting", flush=True)
    print(f"ENV={env or '(unset)'}", flush=True)
    print("Upgrading schema to head...", flush=True)

    from alembic import command
    from alembic.config import Config

    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", db_url)
    command.upgrade(cfg, "head")
    print("Schema up to date.", flush=True)

    print("Ensuring admin account...", flush=True)
    from scripts import init_db

    init_db.seed_only(database_url=db_url)
    print("Release: done", flush=True)


def main() -> None:
    run_release()


if __name__ == "__main__":
    main()
