import base64
import io

import pytest

from ss_manager.link import build_link, parse_link, render_qr
from ss_manager.models import ServerConfig


def test_known_link():
    config = ServerConfig(server_port=443, password="abc123", method="chacha20-ietf-poly1305")
    link = build_link(config, "1.2.3.4")
    assert link == "ss://Y2hhY2hhMjAtaWV0Zi1wb2x5MTMwNTphYmMxMjNAMS4yLjMuNDo0NDM="


def test_link_is_single_token():
    config = ServerConfig(server_port=8388, password="x" * 200, method="aes-256-gcm")
    link = build_link(config, "example.com")
    assert "\n" not in link
    assert " " not in link


@pytest.mark.parametrize("host", ["1.2.3.4", "example.com", "2001:db8::1"])
def test_parse_recovers_fields(host):
    config = ServerConfig(server_port=65535, password="p:a@ss", method="xchacha20-ietf-poly1305")
    assert parse_link(build_link(config, host)) == ("xchacha20-ietf-poly1305", "p:a@ss", host, 65535)


def test_ipv6_host_is_bracketed():
    config = ServerConfig(server_port=8388, password="x")
    token = build_link(config, "::1")[len("ss://"):]
    assert base64.b64decode(token).decode().endswith("@[::1]:8388")


@pytest.mark.parametrize("uri", ["http://abc", "ss://!!!", "ss://" + base64.b64encode(b"nohost").decode()])
def test_parse_rejects(uri):
    with pytest.raises(ValueError):
        parse_link(uri)


def test_render_qr_writes_output():
    out = io.StringIO()
    assert render_qr("ss://Y2hhY2hhMjA=", out) is True
    assert out.getvalue().strip()


def test_render_qr_failure_is_not_fatal():
    out = io.StringIO()
    assert render_qr("a" * 4000, out) is False
