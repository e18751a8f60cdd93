"""
auth/bootstrap.py -- First-run admin account.

A fresh database has no users, and the only way to get an admin through the
API is to already be one. ensure_default_admin() closes that loop on startup:
if the store is empty and ADMIN_PASSWORD is configured, it creates one admin
from ADMIN_USERNAME / ADMIN_EMAIL. Without ADMIN_PASSWORD it logs a warning
and creates nothing -- there is no built-in default password.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from auth.models import PublicUser, Role
from auth.service import AuthService

if TYPE_CHECKING:
    from core.config import Settings

logger = logging.getLogger("userdesk.auth.bootstrap")


def ensure_default_admin(service: AuthService, settings: Settings) -> PublicUser | None:
    """Create the configured admin when the user table is empty.

    Returns the created user, or None when nothing was created.
    """
    if service.store.count_users() > 0:
        return None
    if not settings.admin_password:
        logger.warning("No users present, but ADMIN_PASSWORD not set -> skip creating default admin.")
        return None

    user = service.provision(settings.admin_username, settings.admin_email, settings.admin_password, Role.ADMIN)
    logger.warning("Created default admin -> username=%s email=%s id=%s", user.username, user.email, user.id)
    return user
