"""Shadowsocks-Rust 管理器核心模块"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, TextIO

from .config import CONFIG_FILE, INSTALL_DIR, SERVICE_FILE, SERVICE_NAME
from .firewall import FirewallBackend, select_backend
from .installer import BinaryInstaller
from .link import build_link, render_qr
from .models import ServerConfig, ServiceState
from .network import resolve_public_ip
from .service import BinaryNotFoundError, ServiceController
from .store import ConfigStore
from .system import Runner, run_command

logger = logging.getLogger(__name__)


@dataclass
class ConnectionInfo:
    """showInfo 展示的连接信息"""
    host: str
    config: ServerConfig
    link: str
    state: ServiceState
    config_path: Path


class ShadowsocksManager:
    """Shadowsocks-Rust 管理器"""

    def __init__(self, config_path: Path = CONFIG_FILE, unit_path: Path = SERVICE_FILE,
                 install_dir: Path = INSTALL_DIR, runner: Runner = run_command,
                 installer: Optional[BinaryInstaller] = None,
                 firewall: Optional[FirewallBackend] = None,
                 resolver: Optional[Callable[[], str]] = None,
                 settle_delay: Optional[float] = None):
        self.store = ConfigStore(config_path)
        self.service = ServiceController(SERVICE_NAME, unit_path, runner)
        if settle_delay is not None:
            self.service.settle_delay = settle_delay
        self.installer = installer or BinaryInstaller(install_dir)
        self.runner = runner
        self._firewall = firewall
        self._resolver = resolver or (lambda: resolve_public_ip(runner=runner))

    @property
    def firewall(self) -> FirewallBackend:
        """首次使用时探测防火墙后端"""
        if self._firewall is None:
            self._firewall = select_backend(self.runner)
            logger.debug("防火墙后端: %s", self._firewall.name)
        return self._firewall

    # ========== 状态 ==========

    def state(self) -> ServiceState:
        if not self.installer.find_binary() or not self.service.is_installed():
            return ServiceState.ABSENT
        if self.service.is_running():
            return ServiceState.RUNNING
        return ServiceState.STOPPED

    def is_configured(self) -> bool:
        return self.store.exists()

    def _require_binary(self) -> Path:
        binary = self.installer.find_binary()
        if not binary:
            raise BinaryNotFoundError("未找到 ssserver 可执行文件，请先安装")
        return binary

    # ========== 安装 / 配置 ==========

    def install(self, config: ServerConfig, download: bool = True) -> tuple[bool, list[str]]:
        """下载二进制、写配置、注册服务、放行端口并启动，返回 (是否运行, 新增的防火墙规则)"""
        config.validate()
        if download:
            self.installer.install()
        self.store.write(config)
        self.service.install(self.installer.find_binary(), self.store.path)
        opened = self.open_firewall(config.server_port)
        return self.service.restart(), opened

    def reconfig(self, config: ServerConfig) -> tuple[bool, list[str]]:
        """覆盖已有配置并重启，返回 (是否运行, 新增的防火墙规则)"""
        previous = self.store.read()
        self.store.write(config)
        if previous.server_port != config.server_port:
            self.firewall.close(previous.server_port)
        opened = self.open_firewall(config.server_port)
        return self.service.restart(), opened

    def open_firewall(self, port: int) -> list[str]:
        return self.firewall.open(port)

    # ========== 服务控制 ==========

    def start(self) -> bool:
        self._require_binary()
        return self.service.start()

    def restart(self) -> bool:
        self._require_binary()
        return self.service.restart()

    def stop(self) -> bool:
        return self.service.stop()

    def uninstall(self) -> None:
        """停止并删除服务、防火墙规则、配置和二进制"""
        port = None
        if self.store.exists():
            try:
                port = self.store.read().server_port
            except ValueError as e:
                logger.warning("读取配置失败，跳过防火墙清理: %s", e)

        self.service.uninstall()
        if port is not None:
            self.firewall.close(port)
        self.store.delete()
        self.installer.remove()

    # ========== 信息展示 ==========

    def get_info(self) -> ConnectionInfo:
        """读取配置并生成连接信息，不修改任何状态"""
        config = self.store.read()
        host = self._resolver()
        return ConnectionInfo(
            host=host,
            config=config,
            link=build_link(config, host),
            state=self.state(),
            config_path=self.store.path,
        )

    def get_link(self) -> str:
        config = self.store.read()
        return build_link(config, self._resolver())

    def show_qr(self, out: Optional[TextIO] = None) -> tuple[str, bool]:
        """打印二维码，返回 (链接, 是否成功渲染)"""
        link = self.get_link()
        return link, render_qr(link, out)

    def get_log(self, lines: Optional[int] = None) -> tuple[bool, str]:
        if lines is None:
            return self.service.logs()
        return self.service.logs(lines)
