from __future__ import annotations

import base64

from tems.auth import check_credentials, is_protected, parse_basic_header
from tems.config import BasicAuth


def _header(raw: str) -> str:
    return "Basic " + base64.b64encode(raw.encode()).decode()


def test_parse_basic_header():
    assert parse_basic_header(_header("u:p:x")) == ("u", "p:x")
    assert parse_basic_header(None) is None
    assert parse_basic_header("Bearer abc") is None
    assert parse_basic_header("Basic !!!") is None
    assert parse_basic_header(_header("nocolon")) is None


def test_empty_credentials_disable_the_gate():
    assert check_credentials(BasicAuth(), None) is True


def test_exact_match_required():
    basic = BasicAuth(user="admin", password="pw")
    assert check_credentials(basic, _header("admin:pw")) is True
    assert check_credentials(basic, _header("admin:pw2")) is False
    assert check_credentials(basic, _header("Admin:pw")) is False
    assert check_credentials(basic, None) is False


def test_password_only_still_gates():
    basic = BasicAuth(password="pw")
    assert basic.enabled
    assert check_credentials(basic, _header(":pw")) is True
    assert check_credentials(basic, None) is False


def test_protected_paths():
    assert is_protected("/api")
    assert is_protected("/web/")
    assert is_protected("/web/index.html")
    assert not is_protected("/metrics")
    assert not is_protected("/")
    assert not is_protected("/apix")
