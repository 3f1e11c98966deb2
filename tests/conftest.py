"""测试公共夹具: 用 FakeSystem 模拟 systemctl / ufw / iptables"""

import pytest

from ss_manager.firewall import IptablesBackend
from ss_manager.manager import ShadowsocksManager


class FakeSystem:
    """记录命令并模拟系统状态的 runner"""

    def __init__(self, ufw_active: bool = False):
        self.calls = []
        self.active = False
        self.enabled = False
        self.fail_start = False
        self.iptables = []
        self.ufw_active = ufw_active
        self.ufw_rules = []
        self.journal = "-- Logs begin --\nssserver started"
        self.hostname = "10.0.0.5 fe80::1"

    def __call__(self, args, timeout=None):
        args = list(args)
        self.calls.append(args)
        handler = getattr(self, f"_{args[0]}", None)
        if handler is None:
            return False, f"未找到命令: {args[0]}"
        return handler(args[1:])

    def commands(self, prefix):
        return [c for c in self.calls if c[:len(prefix)] == prefix]

    def _systemctl(self, args):
        verb = args[0]
        if verb == "is-active":
            return self.active, ""
        if verb in ("start", "restart"):
            self.active = not self.fail_start
        elif verb == "stop":
            self.active = False
        elif verb == "enable":
            self.enabled = True
        elif verb == "disable":
            self.enabled = False
        return True, ""

    def _journalctl(self, args):
        return True, self.journal

    def _hostname(self, args):
        return True, self.hostname

    def _iptables(self, args):
        op, rule = args[0], tuple(args[1:])
        if op == "-C":
            return rule in self.iptables, ""
        if op == "-I":
            self.iptables.insert(0, rule)
            return True, ""
        if op == "-D":
            if rule not in self.iptables:
                return False, "Bad rule"
            self.iptables.remove(rule)
            return True, ""
        return False, "unknown option"

    def _ufw(self, args):
        if args[0] == "status":
            if not self.ufw_active:
                return True, "Status: inactive"
            lines = ["Status: active", "", "To                         Action      From",
                     "--                         ------      ----"]
            lines += [f"{rule:<27}ALLOW       Anywhere" for rule in self.ufw_rules]
            return True, "\n".join(lines)
        if args[0] == "allow":
            self.ufw_rules.append(args[1])
            return True, "Rule added"
        if args[:2] == ["delete", "allow"]:
            self.ufw_rules.remove(args[2])
            return True, "Rule deleted"
        return False, "ERROR: Invalid syntax"


@pytest.fixture(autouse=True)
def no_system_binary(monkeypatch):
    """不让宿主机 PATH 中的 ssserver 影响测试"""
    monkeypatch.setattr("ss_manager.installer.shutil.which", lambda name: None)


@pytest.fixture
def system():
    return FakeSystem()


@pytest.fixture
def paths(tmp_path):
    return {
        "config_path": tmp_path / "etc" / "shadowsocks-rust" / "config.json",
        "unit_path": tmp_path / "systemd" / "ssserver.service",
        "install_dir": tmp_path / "bin",
    }


@pytest.fixture
def manager(paths, system):
    return ShadowsocksManager(
        runner=system,
        firewall=IptablesBackend(system),
        resolver=lambda: "1.2.3.4",
        settle_delay=0,
        **paths,
    )


@pytest.fixture
def fake_binary(paths):
    paths["install_dir"].mkdir(parents=True, exist_ok=True)
    binary = paths["install_dir"] / "ssserver"
    binary.write_text("#!/bin/sh\n")
    binary.chmod(0o755)
    return binary
