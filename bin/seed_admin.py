# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Bootstrap script – creates the first admin user.

Run once after the initial migration:
    python bin/seed_admin.py

The script reads FIRST_ADMIN_EMAIL, FIRST_ADMIN_PASSWORD and
FIRST_ADMIN_NAME from etc/app.conf (or the environment).  After the row is
inserted those values are no longer used by the application.  Further
workers and clients join through admin-issued invitations.
"""

import sys
import os

# ---------------------------------------------------------------------------
# Path setup so backend modules are importable
# ---------------------------------------------------------------------------
# bin/seed_admin.py  →  ../  →  project root
_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_BACKEND_DIR  = os.path.join(_PROJECT_ROOT, "backend")
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

from core.config import settings                                   # noqa: E402
from core.logger import logger                                     # noqa: E402
from core.security import hash_password, password_policy_error     # noqa: E402
from database import SessionLocal                                  # noqa: E402
from models.user import User                                       # noqa: E402


def seed() -> int:
    if not settings.first_admin_email or not settings.first_admin_password:
        logger.warning("seed_admin | FIRST_ADMIN_EMAIL or FIRST_ADMIN_PASSWORD not set – nothing to do")
        return 0

    err = password_policy_error(settings.first_admin_password)
    if err:
        logger.error("seed_admin | FIRST_ADMIN_PASSWORD rejected: %s", err)
        return 1

    email = settings.first_admin_email.strip().lower()
    db = SessionLocal()
    try:
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            logger.info("seed_admin | admin '%s' already exists – skipping", email)
            return 0

        admin = User(
            name=settings.first_admin_name,
            email=email,
            password_hash=hash_password(settings.first_admin_password),
            role="admin",
        )
        db.add(admin)
        db.commit()
        logger.info("seed_admin | admin '%s' created", email)
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(seed())
