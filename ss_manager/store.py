"""config.json 读写"""

import json
import logging
import os
import shutil
from pathlib import Path

from .models import ServerConfig

logger = logging.getLogger(__name__)


class ConfigNotFoundError(FileNotFoundError):
    """配置文件不存在"""
    pass


class ConfigParseError(ValueError):
    """配置文件格式错误"""
    pass


class ConfigStore:
    """单例配置文件，写入后权限限制为 0600"""

    def __init__(self, path: Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def write(self, config: ServerConfig) -> Path:
        """校验并整体覆盖写入配置"""
        config.validate()
        self.path.parent.mkdir(parents=True, exist_ok=True)

        # 先以 0600 创建，避免密码短暂可读
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(config.to_dict(), f, indent=2)
            f.write("\n")
        os.chmod(self.path, 0o600)
        logger.info("已写入配置文件: %s", self.path)
        return self.path

    def read(self) -> ServerConfig:
        if not self.exists():
            raise ConfigNotFoundError(f"配置文件不存在: {self.path}")
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return ServerConfig.from_dict(data)
        except ValueError as e:
            raise ConfigParseError(f"配置文件格式错误 {self.path}: {e}") from e

    def delete(self) -> bool:
        """删除配置目录"""
        directory = self.path.parent
        if not directory.exists():
            return False
        shutil.rmtree(directory)
        logger.info("已删除配置目录: %s", directory)
        return True
