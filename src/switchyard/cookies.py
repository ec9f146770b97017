"""
Cookie header helpers.
Parsing of the inbound ``Cookie`` header and formatting of ``Set-Cookie``.
"""

from dataclasses import dataclass
from urllib.parse import quote, unquote


@dataclass(frozen=True, slots=True)
class CookieOptions:
    """Attributes attached to an outbound cookie."""

    max_age: int | None = None  # seconds
    expires: str | None = None
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: str | None = "lax"

    def attributes(self) -> list[str]:
        attrs: list[str] = []
        if self.max_age is not None:
            attrs.append(f"Max-Age={self.max_age}")
        if self.expires:
            attrs.append(f"Expires={self.expires}")
        if self.path:
            attrs.append(f"Path={self.path}")
        if self.domain:
            attrs.append(f"Domain={self.domain}")
        if self.secure:
            attrs.append("Secure")
        if self.httponly:
            attrs.append("HttpOnly")
        if self.samesite:
            attrs.append(f"SameSite={self.samesite.capitalize()}")
        return attrs


def parse_cookies(cookie_header: str) -> dict[str, str]:
    """Parse a Cookie header into ``{name: value}``; later duplicates win."""
    cookies: dict[str, str] = {}

    for item in cookie_header.split(";"):
        name, sep, value = item.strip().partition("=")
        if not sep or not name:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] == '"':
            value = value[1:-1]
        cookies[name.strip()] = unquote(value)

    return cookies


def format_set_cookie(
    name: str,
    value: str,
    options: CookieOptions | None = None,
) -> str:
    """Build a Set-Cookie header value."""
    options = options or CookieOptions()
    return "; ".join([f"{name}={quote(value, safe='')}", *options.attributes()])
