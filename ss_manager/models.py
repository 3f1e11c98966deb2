"""数据模型定义"""

from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Optional, Union

from .config import (
    DEFAULT_METHOD, DEFAULT_MODE, DEFAULT_SERVER, DEFAULT_TIMEOUT,
    METHODS, PORT_MAX, PORT_MIN,
)


class ServiceState(Enum):
    """服务状态 (由二进制、服务文件和 systemd 推导，不持久化)"""
    ABSENT = "absent"
    STOPPED = "installed-stopped"
    RUNNING = "installed-running"


def validate_port(value: Union[int, str, None]) -> Optional[int]:
    """端口在 1025-65535 之间时返回整数，否则返回 None"""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value.isdigit():
            return None
    try:
        port = int(value)
    except (TypeError, ValueError):
        return None
    if PORT_MIN <= port <= PORT_MAX:
        return port
    return None


@dataclass
class ServerConfig:
    """服务端配置，字段名与 config.json 的键一致"""
    server_port: int
    password: str
    method: str = DEFAULT_METHOD
    server: str = DEFAULT_SERVER
    mode: str = DEFAULT_MODE
    timeout: int = DEFAULT_TIMEOUT
    fast_open: bool = False
    no_delay: bool = True
    ipv6_first: bool = True

    def validate(self) -> None:
        if validate_port(self.server_port) is None or not isinstance(self.server_port, int):
            raise ValueError(f"端口无效，需在 {PORT_MIN}-{PORT_MAX} 之间: {self.server_port}")
        if not isinstance(self.password, str) or not self.password:
            raise ValueError("密码不能为空")
        if self.method not in METHODS:
            raise ValueError(f"不支持的加密方式: {self.method}")
        if not self.server:
            raise ValueError("监听地址不能为空")

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ServerConfig":
        """从 config.json 内容构建，缺少字段或类型错误时抛出 ValueError"""
        if not isinstance(data, dict):
            raise ValueError("配置内容必须是 JSON 对象")
        for key in ("server_port", "password", "method"):
            if key not in data:
                raise ValueError(f"配置缺少字段: {key}")

        kwargs = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            if f.type in (int, "int") and (isinstance(value, bool) or not isinstance(value, int)):
                raise ValueError(f"字段 {f.name} 必须是整数")
            if f.type in (bool, "bool") and not isinstance(value, bool):
                raise ValueError(f"字段 {f.name} 必须是布尔值")
            if f.type in (str, "str") and not isinstance(value, str):
                raise ValueError(f"字段 {f.name} 必须是字符串")
            kwargs[f.name] = value

        config = cls(**kwargs)
        config.validate()
        return config
