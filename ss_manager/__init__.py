"""Shadowsocks-Rust 安装/管理工具"""

__version__ = "0.1.0"

from .manager import ShadowsocksManager
from .models import ServerConfig, ServiceState

__all__ = ["ShadowsocksManager", "ServerConfig", "ServiceState"]
