from __future__ import annotations

import logging
import secrets
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from .settings import get_settings

logger = logging.getLogger(__name__)

_security = HTTPBasic(auto_error=False)


# PUBLIC_INTERFACE
def get_current_owner(creds: Optional[HTTPBasicCredentials] = Depends(_security)) -> Optional[str]:
    """
    Resolve the owner identity of the request, or None when there is none.

    Behavior:
    - Credentials are checked against AUTH_USERS from settings.
    - On a match, the username is the owner identity.
    - Missing, unknown or wrong credentials resolve to None. Endpoints decide what
      None means: queries answer with empty results, mutations fail with 401.

    Usage:
        @router.get("/")
        def endpoint(owner: Optional[str] = Depends(get_current_owner)) -> ...
    """
    if creds is None or not creds.username:
        return None

    expected = get_settings().auth_users.get(creds.username)
    if expected is None:
        logger.debug("Unknown user in basic auth credentials")
        return None

    if not secrets.compare_digest(creds.password.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("Invalid password for user=%s", creds.username)
        return None

    return creds.username
