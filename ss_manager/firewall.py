"""防火墙端口放行 (ufw / iptables)"""

import logging
import re
import shutil
from typing import Callable, Optional

from .system import Runner, run_command

logger = logging.getLogger(__name__)

PROTOCOLS = ("tcp", "udp")


class FirewallBackend:
    """防火墙后端基类"""
    name = "none"

    def __init__(self, runner: Runner = run_command):
        self.run = runner

    def has_rule(self, port: int, proto: str) -> bool:
        raise NotImplementedError

    def _add_rule(self, port: int, proto: str) -> tuple[bool, str]:
        raise NotImplementedError

    def _delete_rule(self, port: int, proto: str) -> tuple[bool, str]:
        raise NotImplementedError

    def open(self, port: int) -> list[str]:
        """放行 tcp/udp 端口，已存在的规则不重复添加，返回新增的规则"""
        added = []
        for proto in PROTOCOLS:
            if self.has_rule(port, proto):
                logger.debug("%s 规则已存在: %s/%s", self.name, port, proto)
                continue
            success, output = self._add_rule(port, proto)
            if success:
                added.append(f"{port}/{proto}")
            else:
                logger.warning("%s 放行 %s/%s 失败: %s", self.name, port, proto, output)
        return added

    def close(self, port: int) -> list[str]:
        """移除端口放行规则，返回被删除的规则"""
        removed = []
        for proto in PROTOCOLS:
            if not self.has_rule(port, proto):
                continue
            success, output = self._delete_rule(port, proto)
            if success:
                removed.append(f"{port}/{proto}")
            else:
                logger.warning("%s 移除 %s/%s 失败: %s", self.name, port, proto, output)
        return removed


class UfwBackend(FirewallBackend):
    """ufw 允许列表"""
    name = "ufw"

    def is_enabled(self) -> bool:
        success, output = self.run(["ufw", "status"])
        return success and re.search(r"^Status:\s*active\b", output, re.MULTILINE | re.IGNORECASE) is not None

    def has_rule(self, port: int, proto: str) -> bool:
        success, output = self.run(["ufw", "status"])
        if not success:
            return False
        pattern = rf"^{port}/{proto}\s+ALLOW\b"
        return re.search(pattern, output, re.MULTILINE) is not None

    def _add_rule(self, port: int, proto: str) -> tuple[bool, str]:
        return self.run(["ufw", "allow", f"{port}/{proto}"])

    def _delete_rule(self, port: int, proto: str) -> tuple[bool, str]:
        return self.run(["ufw", "delete", "allow", f"{port}/{proto}"])


class IptablesBackend(FirewallBackend):
    """iptables INPUT 链规则"""
    name = "iptables"

    def _rule(self, port: int, proto: str) -> list[str]:
        return ["INPUT", "-p", proto, "--dport", str(port), "-j", "ACCEPT"]

    def has_rule(self, port: int, proto: str) -> bool:
        success, _ = self.run(["iptables", "-C", *self._rule(port, proto)])
        return success

    def _add_rule(self, port: int, proto: str) -> tuple[bool, str]:
        return self.run(["iptables", "-I", *self._rule(port, proto)])

    def _delete_rule(self, port: int, proto: str) -> tuple[bool, str]:
        return self.run(["iptables", "-D", *self._rule(port, proto)])


class NoBackend(FirewallBackend):
    """未检测到防火墙，仅提示手动放行"""
    name = "none"

    def open(self, port: int) -> list[str]:
        logger.warning(
            "未检测到 ufw/iptables，若有其它防火墙（如云厂商安全组、nftables），"
            "请手动放行 %s/tcp 和 %s/udp", port, port
        )
        return []

    def close(self, port: int) -> list[str]:
        return []


def select_backend(runner: Runner = run_command,
                   which: Callable[[str], Optional[str]] = shutil.which) -> FirewallBackend:
    """优先使用已启用的 ufw，其次 iptables，都没有则返回 NoBackend"""
    if which("ufw"):
        ufw = UfwBackend(runner)
        if ufw.is_enabled():
            return ufw
        logger.debug("ufw 未启用，尝试 iptables")
    if which("iptables"):
        return IptablesBackend(runner)
    return NoBackend(runner)
