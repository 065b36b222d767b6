"""Authentication against the identity service."""

import logging
from typing import Any

from .errors import ConfigError
from .transport import AUTHORIZATION_URL, IMS_URL, Session

logger = logging.getLogger(__name__)

TOKEN_PATH = "/ims/token/v1/"
PERMISSIONS_PATH = "/permissions"


def get_access_token(session: Session) -> dict[str, Any]:
    """Exchange the device token for an access token.

    The new token is stored on the session's credentials so later requests
    carry it. Returns the full token response.
    """
    creds = session.credentials
    missing = [
        name
        for name in ("client_secret", "device_id", "device_secret")
        if not getattr(creds, name)
    ]
    if missing:
        raise ConfigError(f"Device grant requires: {', '.join(missing)}")

    data = session.post(
        f"{IMS_URL}{TOKEN_PATH}",
        params={
            "grant_type": "device",
            "scope": "AdobeID,openid",
            "client_id": creds.client_id,
            "client_secret": creds.client_secret,
            "device_token": creds.device_secret,
            "device_id": creds.device_id,
        },
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )

    token = (data or {}).get("access_token")
    if token:
        creds.access_token = token
        logger.info("Obtained access token for client %s", creds.client_id)
    return data


def get_permissions(session: Session) -> Any:
    """Get the permissions of the current user."""
    return session.get(f"{AUTHORIZATION_URL}{PERMISSIONS_PATH}")


def get_publications(session: Session) -> Any:
    """Get the publications the current user can access.

    Publications come from the permissions endpoint and require a bearer
    token.
    """
    if not session.credentials.access_token:
        raise ConfigError("No access token. Call get_access_token() first.")
    return session.get(
        f"{AUTHORIZATION_URL}{PERMISSIONS_PATH}",
        headers={"Authorization": f"bearer {session.credentials.access_token}"},
    )
