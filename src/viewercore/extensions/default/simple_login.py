"""
Simple login bootstrap.

When `dental.simpleLogin.enabled` is set and no OIDC provider is configured,
the user authentication service is switched on, a bearer-token header
implementation is installed and the stored user (if any) is restored.

The stored user is a JSON object `{"username": ..., "token": ...}`, given
inline as `user` or as a file path in `userFile`.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .services import AuthenticatedUser, UserAuthenticationService

if TYPE_CHECKING:
    from viewercore.session import ViewerSession

logger = logging.getLogger(__name__)


class StoredUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    username: Optional[str] = None
    token: Optional[str] = None


class SimpleLoginConfig(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    enabled: bool = False
    user: Optional[StoredUser] = None
    user_file: Optional[str] = Field(default=None, alias="userFile")


def simple_login_settings(
    raw: Mapping[str, Any],
    overrides: Optional[Mapping[str, Any]] = None,
) -> Optional[SimpleLoginConfig]:
    """
    Settings from `raw["dental"]["simpleLogin"]` updated by `overrides`, or
    None when simple login is off or OIDC is configured.
    """
    oidc = raw.get("oidc")
    if isinstance(oidc, list) and oidc:
        return None
    dental = raw.get("dental") or {}
    data: Dict[str, Any] = dict(dental.get("simpleLogin") or {})
    data.update(overrides or {})
    settings = SimpleLoginConfig.model_validate(data)
    return settings if settings.enabled else None


def load_stored_user(settings: SimpleLoginConfig) -> Optional[AuthenticatedUser]:
    stored = settings.user
    if stored is None and settings.user_file:
        path = Path(settings.user_file).expanduser()
        try:
            stored = StoredUser.model_validate(json.loads(path.read_text(encoding="utf-8")))
        except FileNotFoundError:
            return None
        except (OSError, ValueError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable simple-login user file {path}: {e}")
            return None
    if stored is None or not stored.token:
        return None
    return AuthenticatedUser(username=stored.username, access_token=stored.token)


def store_user(path: str | Path, username: str, token: str) -> None:
    """Write the user file read back by `load_stored_user`."""
    target = Path(path).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps({"username": username, "token": token}), encoding="utf-8")


def bearer_header(auth: UserAuthenticationService) -> Optional[Dict[str, str]]:
    user = auth.get_user()
    token = user.access_token if user else None
    if not token and user is not None:
        token = user.profile.get("token")
    return {"Authorization": f"Bearer {token}"} if token else None


def apply_simple_login(
    session: "ViewerSession",
    overrides: Optional[Mapping[str, Any]] = None,
) -> bool:
    """Returns True when simple login was switched on."""
    settings = simple_login_settings(session.config.raw, overrides)
    if settings is None:
        return False

    auth: UserAuthenticationService = session.services.userAuthenticationService
    auth.set(enabled=True)
    auth.set_service_implementation(get_authorization_header=lambda: bearer_header(auth))

    user = load_stored_user(settings)
    if user is not None:
        auth.set_user(user)
    logger.info(f"Simple login enabled (restored user: {user.username if user else None})")
    return True


__all__ = [
    "SimpleLoginConfig",
    "StoredUser",
    "apply_simple_login",
    "bearer_header",
    "load_stored_user",
    "simple_login_settings",
    "store_user",
]
