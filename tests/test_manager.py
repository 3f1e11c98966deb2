import io

import pytest

from ss_manager.link import parse_link
from ss_manager.models import ServerConfig, ServiceState
from ss_manager.service import BinaryNotFoundError
from ss_manager.store import ConfigNotFoundError

MUTATING = ("start", "stop", "restart", "enable", "disable", "daemon-reload")


@pytest.fixture
def config():
    return ServerConfig(server_port=8388, password="abc123", method="aes-256-gcm")


def test_absent_before_install(manager):
    assert manager.state() is ServiceState.ABSENT
    assert not manager.is_configured()


def test_install_lifecycle(manager, system, config, fake_binary):
    assert manager.install(config, download=False) == (True, ["8388/tcp", "8388/udp"])
    assert manager.state() is ServiceState.RUNNING
    assert manager.store.read() == config
    assert f"ExecStart={fake_binary} -c {manager.store.path}" in manager.service.unit_path.read_text()
    assert len(system.iptables) == 2

    manager.stop()
    assert manager.state() is ServiceState.STOPPED
    assert manager.start() is True


def test_install_downloads_release(manager, config, fake_binary, monkeypatch):
    calls = []
    monkeypatch.setattr(manager.installer, "install", lambda: calls.append("install") or fake_binary)
    manager.install(config)
    assert calls == ["install"]


def test_install_without_binary(manager, config):
    with pytest.raises(BinaryNotFoundError):
        manager.install(config, download=False)
    assert manager.state() is ServiceState.ABSENT


def test_uninstall_after_install(manager, system, config, fake_binary):
    manager.install(config, download=False)
    manager.uninstall()

    assert not manager.store.path.exists()
    assert not manager.service.unit_path.exists()
    assert not fake_binary.exists()
    assert system.iptables == []
    assert manager.state() is ServiceState.ABSENT


def test_uninstall_when_absent(manager):
    manager.uninstall()
    assert manager.state() is ServiceState.ABSENT


def test_reconfig_requires_config(manager, config):
    with pytest.raises(ConfigNotFoundError):
        manager.reconfig(config)


def test_reconfig_moves_firewall_rules(manager, system, config, fake_binary):
    manager.install(config, download=False)
    new = ServerConfig(server_port=9000, password="other", method="chacha20-ietf-poly1305")
    assert manager.reconfig(new) == (True, ["9000/tcp", "9000/udp"])
    assert manager.store.read() == new
    ports = {rule[4] for rule in system.iptables}
    assert ports == {"9000"}


def test_start_requires_binary(manager):
    with pytest.raises(BinaryNotFoundError):
        manager.start()
    with pytest.raises(BinaryNotFoundError):
        manager.restart()


def test_get_info_is_read_only(manager, system, config, fake_binary):
    manager.install(config, download=False)
    before = manager.store.path.read_text()
    system.calls.clear()

    info = manager.get_info()
    assert info.host == "1.2.3.4"
    assert info.state is ServiceState.RUNNING
    assert parse_link(info.link) == ("aes-256-gcm", "abc123", "1.2.3.4", 8388)

    assert manager.store.path.read_text() == before
    for call in system.calls:
        assert not (call[0] == "systemctl" and call[1] in MUTATING)
        assert call[0] != "iptables" or call[1] == "-C"


def test_show_qr_returns_link(manager, config, fake_binary):
    manager.install(config, download=False)
    out = io.StringIO()
    link, rendered = manager.show_qr(out)
    assert rendered
    assert link == manager.get_link()
    assert out.getvalue()


def test_get_log(manager):
    success, output = manager.get_log()
    assert success
    assert "ssserver" in output


def test_reinstall_keeps_existing_rules(manager, system, config, fake_binary):
    manager.install(config, download=False)
    running, opened = manager.install(config, download=False)
    assert running
    assert opened == []
    assert len(system.iptables) == 2
