"""公网地址探测"""

import http.client
import ipaddress
import logging
from urllib import request
from urllib.error import URLError

from .config import IP_LOOKUP_TIMEOUT, IP_LOOKUP_URLS
from .system import Runner, run_command

logger = logging.getLogger(__name__)

FALLBACK_ADDRESS = "127.0.0.1"


def _lookup(url: str, timeout: float) -> str:
    with request.urlopen(url, timeout=timeout) as response:
        text = response.read().decode("utf-8").strip()
    # 只接受合法 IP，防止返回错误页面
    return str(ipaddress.ip_address(text))


def local_address(runner: Runner = run_command) -> str:
    """本机地址猜测 (hostname -I 的第一个地址)"""
    success, output = runner(["hostname", "-I"])
    if success:
        for candidate in output.split():
            try:
                return str(ipaddress.ip_address(candidate))
            except ValueError:
                continue
    return FALLBACK_ADDRESS


def resolve_public_ip(urls=IP_LOOKUP_URLS, timeout: float = IP_LOOKUP_TIMEOUT,
                      runner: Runner = run_command) -> str:
    """依次查询 IPv4 / IPv6 公网地址，失败时退回本机地址，不重试"""
    for url in urls:
        try:
            return _lookup(url, timeout)
        except (URLError, OSError, ValueError, http.client.HTTPException) as e:
            logger.debug("查询公网地址失败 %s: %s", url, e)

    address = local_address(runner)
    logger.warning("无法获取公网地址，使用本机地址 %s", address)
    return address
