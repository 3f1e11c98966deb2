"""systemd 服务管理"""

import logging
import time
from pathlib import Path
from typing import Optional

from .config import LOG_LINES, SETTLE_DELAY
from .system import Runner, run_command

logger = logging.getLogger(__name__)


class BinaryNotFoundError(RuntimeError):
    """未找到 ssserver 可执行文件"""
    pass


UNIT_TEMPLATE = """[Unit]
Description=Shadowsocks-Rust Server ({name})
After=network-online.target
Wants=network-online.target

[Service]
Type=simple
ExecStart={exec_path} -c {config_path}
Restart=on-failure
RestartSec=3s
LimitNOFILE=1048576
AmbientCapabilities=CAP_NET_BIND_SERVICE
NoNewPrivileges=true

[Install]
WantedBy=multi-user.target
"""


class ServiceController:
    """通过 systemctl 管理 ssserver 服务"""

    def __init__(self, name: str, unit_path: Path, runner: Runner = run_command,
                 settle_delay: float = SETTLE_DELAY):
        self.name = name
        self.unit_path = Path(unit_path)
        self.run = runner
        self.settle_delay = settle_delay

    def render_unit(self, exec_path: Path, config_path: Path) -> str:
        """生成服务文件内容"""
        return UNIT_TEMPLATE.format(name=self.name, exec_path=exec_path, config_path=config_path)

    def install(self, exec_path: Optional[Path], config_path: Path) -> Path:
        """写入服务文件并设置开机启动"""
        if not exec_path:
            raise BinaryNotFoundError("未找到 ssserver 可执行文件")

        self.unit_path.parent.mkdir(parents=True, exist_ok=True)
        self.unit_path.write_text(self.render_unit(exec_path, config_path))
        logger.info("已写入服务文件: %s", self.unit_path)

        self.run(["systemctl", "daemon-reload"])
        success, output = self.run(["systemctl", "enable", self.name])
        if not success:
            logger.warning("设置开机启动失败: %s", output)
        return self.unit_path

    def is_installed(self) -> bool:
        return self.unit_path.is_file()

    def is_running(self) -> bool:
        success, _ = self.run(["systemctl", "is-active", "--quiet", self.name])
        return success

    def _control(self, verb: str) -> bool:
        success, output = self.run(["systemctl", verb, self.name])
        if not success:
            logger.warning("systemctl %s %s 失败: %s", verb, self.name, output)
        time.sleep(self.settle_delay)
        return self.is_running()

    def start(self) -> bool:
        """启动服务，返回是否正在运行"""
        return self._control("start")

    def stop(self) -> bool:
        """停止服务，返回是否仍在运行"""
        return self._control("stop")

    def restart(self) -> bool:
        """重启服务，返回是否正在运行"""
        return self._control("restart")

    def uninstall(self) -> None:
        """停止并注销服务，删除服务文件"""
        self.run(["systemctl", "stop", self.name])
        self.run(["systemctl", "disable", self.name])
        if self.unit_path.exists():
            self.unit_path.unlink()
            logger.info("已删除服务文件: %s", self.unit_path)
        self.run(["systemctl", "daemon-reload"])

    def logs(self, lines: int = LOG_LINES) -> tuple[bool, str]:
        """读取 journal 日志"""
        return self.run(["journalctl", "-u", self.name, "-n", str(lines), "--no-pager"])
