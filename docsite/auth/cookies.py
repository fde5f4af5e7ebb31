"""
Session cookie codec and cookie attribute policy.

Session records are signed with an HMAC (itsdangerous) so a client cannot
forge or alter one. The site and admin scopes are separated by cookie path:
the admin cookie is restricted to /admin so it is never sent to site routes,
and admin routes live under /admin so they never see the site cookie.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from itsdangerous import BadSignature, URLSafeSerializer
from pydantic import ValidationError

from .session import Session

SITE_COOKIE = "site_session"
ADMIN_COOKIE = "admin_session"
SITE_COOKIE_PATH = "/"
ADMIN_COOKIE_PATH = "/admin"

COOKIE_MAX_AGE_SECONDS = 24 * 60 * 60


@dataclass(frozen=True)
class CookieOptions:
    http_only: bool
    secure: bool
    same_site: str
    max_age: int  # seconds
    path: str

    def as_set_cookie_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for Starlette's Response.set_cookie"""
        return {
            "max_age": self.max_age,
            "path": self.path,
            "httponly": self.http_only,
            "secure": self.secure,
            "samesite": self.same_site,
        }


@dataclass(frozen=True)
class SessionCookie:
    """A (name, value, options) triple handed to the HTTP layer"""
    name: str
    value: str
    options: CookieOptions

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


SESSION_SALT = "docsite-session"


def session_serializer(secret: str) -> URLSafeSerializer:
    if not secret:
        raise ValueError("A session secret is required to sign session cookies")
    return URLSafeSerializer(secret_key=secret, salt=SESSION_SALT)


def site_cookie_options(secure: bool) -> CookieOptions:
    return CookieOptions(
        http_only=True,
        secure=secure,
        same_site="strict",
        max_age=COOKIE_MAX_AGE_SECONDS,
        path=SITE_COOKIE_PATH,
    )


def admin_cookie_options(secure: bool) -> CookieOptions:
    return CookieOptions(
        http_only=True,
        secure=secure,
        same_site="strict",
        max_age=COOKIE_MAX_AGE_SECONDS,
        path=ADMIN_COOKIE_PATH,
    )


def encode_session(session: Session, secret: str) -> str:
    """Serialize and sign a session into a cookie-safe string"""
    return session_serializer(secret).dumps(session.model_dump(by_alias=True))


def decode_session(cookie_value: Optional[str], secret: str) -> Optional[Session]:
    """
    Reverse encode_session. Malformed, tampered or foreign-signed values yield None.

    Expiry is not checked here; callers use is_valid_session.
    """
    if not cookie_value:
        return None
    try:
        data = session_serializer(secret).loads(cookie_value.strip())
        return Session.model_validate(data)
    except BadSignature:
        # BadPayload (undecodable JSON) is a BadSignature too
        return None
    except ValidationError:
        return None


def create_site_session_cookie(session: Session, secret: str, secure: bool) -> SessionCookie:
    return SessionCookie(
        name=SITE_COOKIE,
        value=encode_session(session, secret),
        options=site_cookie_options(secure),
    )


def create_admin_session_cookie(session: Session, secret: str, secure: bool) -> SessionCookie:
    return SessionCookie(
        name=ADMIN_COOKIE,
        value=encode_session(session, secret),
        options=admin_cookie_options(secure),
    )


def create_logout_cookie(cookie_name: str, secure: bool) -> SessionCookie:
    """Cookie that overwrites and immediately expires the named session cookie"""
    path = ADMIN_COOKIE_PATH if cookie_name == ADMIN_COOKIE else SITE_COOKIE_PATH
    return SessionCookie(
        name=cookie_name,
        value="",
        options=CookieOptions(
            http_only=True,
            secure=secure,
            same_site="strict",
            max_age=0,
            path=path,
        ),
    )
