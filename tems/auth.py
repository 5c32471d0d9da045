# tems/auth.py
import base64
import binascii
import logging
import secrets
from typing import Optional, Tuple

from fastapi import Request
from fastapi.responses import PlainTextResponse

from .config import BasicAuth

logger = logging.getLogger(__name__)

REALM = "TEMS"
PROTECTED_PREFIXES = ("/api", "/web")


def is_protected(path: str) -> bool:
    for prefix in PROTECTED_PREFIXES:
        if path == prefix or path.startswith(prefix + "/"):
            return True
    return False


def parse_basic_header(authorization: Optional[str]) -> Optional[Tuple[str, str]]:
    if not authorization:
        return None
    scheme, _, encoded = authorization.partition(" ")
    if scheme.lower() != "basic" or not encoded:
        return None
    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    user, sep, password = decoded.partition(":")
    if not sep:
        return None
    return user, password


def check_credentials(basic: BasicAuth, authorization: Optional[str]) -> bool:
    if not basic.enabled:
        return True
    presented = parse_basic_header(authorization)
    if presented is None:
        return False
    user, password = presented
    user_ok = secrets.compare_digest(user.encode("utf-8"), basic.user.encode("utf-8"))
    pass_ok = secrets.compare_digest(password.encode("utf-8"), basic.password.encode("utf-8"))
    return user_ok and pass_ok


class BasicAuthMiddleware:
    """
    HTTP Basic gate for the query API and the dashboard.
    A no-op when neither user nor password is configured.
    """

    def __init__(self, basic: BasicAuth):
        self.basic = basic

    async def __call__(self, request: Request, call_next):
        if not self.basic.enabled or not is_protected(request.url.path):
            return await call_next(request)
        if not check_credentials(self.basic, request.headers.get("authorization")):
            logger.debug("unauthorized %s %s", request.method, request.url.path)
            return PlainTextResponse(
                "Unauthorized",
                status_code=401,
                headers={"WWW-Authenticate": f'Basic realm="{REALM}"'},
            )
        return await call_next(request)
