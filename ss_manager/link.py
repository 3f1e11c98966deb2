"""ss:// 链接与二维码"""

import base64
import binascii
import ipaddress
import logging
import sys
from typing import Optional, TextIO

import qrcode
from qrcode.exceptions import DataOverflowError

from .models import ServerConfig

logger = logging.getLogger(__name__)

SCHEME = "ss://"


def _format_host(host: str) -> str:
    try:
        if ipaddress.ip_address(host).version == 6:
            return f"[{host}]"
    except ValueError:
        pass
    return host


def build_link(config: ServerConfig, host: str) -> str:
    """生成 ss://base64(method:password@host:port)，单行不换行"""
    userinfo = f"{config.method}:{config.password}@{_format_host(host)}:{config.server_port}"
    return SCHEME + base64.b64encode(userinfo.encode("utf-8")).decode("ascii")


def parse_link(uri: str) -> tuple[str, str, str, int]:
    """解析 build_link 生成的链接，返回 (method, password, host, port)"""
    if not uri.startswith(SCHEME):
        raise ValueError(f"不是 ss:// 链接: {uri}")
    token = uri[len(SCHEME):].split("#", 1)[0]
    token += "=" * (-len(token) % 4)
    try:
        decoded = base64.b64decode(token, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise ValueError(f"链接编码无效: {e}") from e

    userinfo, sep, hostport = decoded.rpartition("@")
    method, sep2, password = userinfo.partition(":")
    host, sep3, port = hostport.rpartition(":")
    if not (sep and sep2 and sep3) or not method or not port.isdigit():
        raise ValueError(f"链接内容格式错误: {decoded}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return method, password, host, int(port)


def render_qr(text: str, out: Optional[TextIO] = None) -> bool:
    """在终端打印二维码，失败时返回 False (调用方仍可输出文本链接)"""
    qr = qrcode.QRCode(
        version=None,  # automatic size
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        border=2,
    )
    try:
        qr.add_data(text)
        qr.make(fit=True)
        qr.print_ascii(out=out or sys.stdout, invert=True)
        return True
    except (DataOverflowError, OSError, ValueError) as e:
        logger.warning("生成二维码失败: %s", e)
        return False
