"""配置常量"""

import os
import random
import secrets
import string
from pathlib import Path

# 服务端配置与 systemd 服务
CONFIG_DIR = Path("/etc/shadowsocks-rust")
CONFIG_FILE = CONFIG_DIR / "config.json"
SERVICE_NAME = "ssserver"
SERVICE_FILE = Path("/etc/systemd/system") / f"{SERVICE_NAME}.service"

# shadowsocks-rust 发行版
SS_RUST_VERSION = "v1.21.0"
INSTALL_DIR = Path("/usr/local/bin")
BINARY_NAME = "ssserver"
RELEASE_BINARIES = ("sslocal", "ssserver", "ssurl", "ssmanager", "ssservice")
DOWNLOAD_URL = (
    "https://github.com/shadowsocks/shadowsocks-rust/releases/download/"
    "{version}/shadowsocks-{version}.{target}.tar.xz"
)
DOWNLOAD_TIMEOUT = 300

# 服务端默认参数
DEFAULT_SERVER = "0.0.0.0"
DEFAULT_MODE = "tcp_and_udp"
DEFAULT_TIMEOUT = 600
METHODS = ("aes-256-gcm", "chacha20-ietf-poly1305", "xchacha20-ietf-poly1305")
DEFAULT_METHOD = "chacha20-ietf-poly1305"
PASSWORD_LENGTH = 16

PORT_MIN = 1025
PORT_MAX = 65535
RANDOM_PORT_MAX = 65000

# 公网地址探测
IP_LOOKUP_URLS = ("https://api-ipv4.ip.sb/ip", "https://api-ipv6.ip.sb/ip")
IP_LOOKUP_TIMEOUT = 3

# 服务操作后等待状态稳定的秒数
SETTLE_DELAY = 1.0
LOG_LINES = 200


def generate_random_port() -> int:
    """生成随机监听端口 (1025-65000)"""
    return random.randint(PORT_MIN, RANDOM_PORT_MAX)


def generate_password(length: int = PASSWORD_LENGTH) -> str:
    """生成随机字母数字密码"""
    alphabet = string.ascii_letters + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))


def env_overrides() -> dict:
    """读取环境变量 SS_PASSWORD / SS_PORT / SS_METHOD (空值视为未设置)"""
    overrides = {}
    for key, env in (("password", "SS_PASSWORD"), ("port", "SS_PORT"), ("method", "SS_METHOD")):
        value = os.environ.get(env, "").strip()
        if value:
            overrides[key] = value
    return overrides


def release_version() -> str:
    return os.environ.get("SS_RUST_VERSION", "").strip() or SS_RUST_VERSION
