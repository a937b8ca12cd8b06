"""Visitor preferences persisted in cookies.

Theme, language and session id are read from request cookies and written back
on the response. Missing or malformed cookie values are ignored and the
defaults apply, so a browser that refuses cookies still gets a working page.
"""

import logging
import uuid
from enum import Enum
from typing import Dict, Literal, Mapping, Optional
from pydantic import BaseModel
from starlette.responses import Response


logger = logging.getLogger(__name__)

THEME_COOKIE = "theme-preference"
LANGUAGE_COOKIE = "language-preference"
SESSION_COOKIE = "portfolio_session_id"

# Client hint carrying the OS colour scheme
COLOR_SCHEME_HINT = "Sec-CH-Prefers-Color-Scheme"

ResolvedTheme = Literal["light", "dark"]


class ThemePreference(str, Enum):
    """What the visitor asked for."""

    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class ThemeState(BaseModel):
    """Stored preference together with the theme actually shown."""

    preference: ThemePreference
    resolved: ResolvedTheme
    system: ResolvedTheme

    class Config:
        use_enum_values = True


class PreferenceStore:
    """Cookie-backed key/value store for a single request/response cycle."""

    def __init__(self, cookies: Optional[Mapping[str, str]] = None):
        self._cookies: Dict[str, str] = dict(cookies or {})
        self._pending: Dict[str, str] = {}

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        if key in self._pending:
            return self._pending[key]
        value = self._cookies.get(key)
        return value if value else default

    def set(self, key: str, value: str) -> None:
        self._pending[key] = value

    @property
    def pending(self) -> Dict[str, str]:
        return dict(self._pending)

    def apply(self, response: Response, max_age: int) -> Response:
        """Write pending values to the response as cookies."""
        for key, value in self._pending.items():
            response.set_cookie(key, value, max_age=max_age, path="/", samesite="lax")
        return response


def get_system_theme(hint: Optional[str]) -> ResolvedTheme:
    """OS colour scheme from the client hint, light when the browser sends none."""
    if hint and hint.strip().strip('"').lower() == "dark":
        return "dark"
    return "light"


def parse_theme_preference(value: Optional[str]) -> ThemePreference:
    try:
        return ThemePreference(value)
    except ValueError:
        if value:
            logger.debug("Ignoring invalid theme preference %r", value)
        return ThemePreference.SYSTEM


def resolve_theme(preference: ThemePreference, system_theme: ResolvedTheme) -> ResolvedTheme:
    if preference == ThemePreference.SYSTEM:
        return system_theme
    return preference.value


def toggle_theme(preference: ThemePreference, system_theme: ResolvedTheme) -> ThemePreference:
    """
    Next preference when the visitor presses the theme toggle.

    From "system" the toggle switches to the opposite of what the OS shows;
    from an explicit theme it goes back to following the OS.
    """
    if preference == ThemePreference.SYSTEM:
        return ThemePreference.LIGHT if system_theme == "dark" else ThemePreference.DARK
    return ThemePreference.SYSTEM


def read_theme(store: PreferenceStore, hint: Optional[str]) -> ThemeState:
    preference = parse_theme_preference(store.get(THEME_COOKIE))
    system = get_system_theme(hint)
    return ThemeState(preference=preference, resolved=resolve_theme(preference, system), system=system)


def store_theme(store: PreferenceStore, preference: ThemePreference) -> None:
    store.set(THEME_COOKIE, preference.value)


def get_session_id(store: PreferenceStore) -> str:
    """Return the visitor's session id, creating one on first use."""
    existing = store.get(SESSION_COOKIE)
    if existing:
        try:
            return str(uuid.UUID(existing))
        except ValueError:
            logger.debug("Replacing malformed session id %r", existing)

    session_id = str(uuid.uuid4())
    store.set(SESSION_COOKIE, session_id)
    return session_id
