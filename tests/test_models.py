import pytest

from ss_manager.config import METHODS, generate_password, generate_random_port
from ss_manager.models import ServerConfig, validate_port


@pytest.mark.parametrize("port", [1025, 1026, 8388, 65534, 65535])
def test_validate_port_accepts_range(port):
    assert validate_port(port) == port
    assert validate_port(str(port)) == port


@pytest.mark.parametrize("value", [0, 22, 1024, 65536, 70000, -1, "", "abc", "80a", "1e4", None, True])
def test_validate_port_rejects(value):
    assert validate_port(value) is None


def test_random_port_and_password():
    for _ in range(50):
        assert validate_port(generate_random_port()) is not None
    password = generate_password()
    assert len(password) == 16
    assert password.isalnum()


def test_defaults():
    config = ServerConfig(server_port=8388, password="secret")
    assert config.server == "0.0.0.0"
    assert config.mode == "tcp_and_udp"
    assert config.timeout == 600
    assert config.method in METHODS
    config.validate()


@pytest.mark.parametrize("kwargs", [
    {"server_port": 80, "password": "x"},
    {"server_port": 8388, "password": ""},
    {"server_port": 8388, "password": "x", "method": "rc4-md5"},
])
def test_validate_rejects(kwargs):
    with pytest.raises(ValueError):
        ServerConfig(**kwargs).validate()


def test_from_dict_roundtrip():
    config = ServerConfig(server_port=443, password="abc123", method="aes-256-gcm")
    assert ServerConfig.from_dict(config.to_dict()) == config


@pytest.mark.parametrize("data", [
    [],
    {"password": "x", "method": "aes-256-gcm"},
    {"server_port": "8388", "password": "x", "method": "aes-256-gcm"},
    {"server_port": 8388, "password": "x", "method": "aes-256-gcm", "no_delay": "yes"},
    {"server_port": 8388, "password": 123, "method": "aes-256-gcm"},
])
def test_from_dict_rejects(data):
    with pytest.raises(ValueError):
        ServerConfig.from_dict(data)
