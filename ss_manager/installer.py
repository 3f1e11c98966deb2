"""shadowsocks-rust 二进制下载与安装"""

import logging
import os
import platform
import shutil
import tarfile
import tempfile
from pathlib import Path
from typing import Optional
from urllib import request

from .config import (
    BINARY_NAME, DOWNLOAD_TIMEOUT, DOWNLOAD_URL, INSTALL_DIR,
    RELEASE_BINARIES, release_version,
)

logger = logging.getLogger(__name__)

TARGETS = {
    "x86_64": "x86_64-unknown-linux-gnu",
    "amd64": "x86_64-unknown-linux-gnu",
    "aarch64": "aarch64-unknown-linux-gnu",
    "arm64": "aarch64-unknown-linux-gnu",
}


class InstallError(RuntimeError):
    """下载或解压失败"""
    pass


def detect_target(machine: Optional[str] = None) -> str:
    """根据 CPU 架构选择发行包 target triple"""
    machine = (machine or platform.machine()).lower()
    try:
        return TARGETS[machine]
    except KeyError:
        raise InstallError(f"不支持的 CPU 架构: {machine}")


class BinaryInstaller:
    """下载官方发行包并解压到安装目录"""

    def __init__(self, install_dir: Path = INSTALL_DIR, version: Optional[str] = None):
        self.install_dir = Path(install_dir)
        self.version = version or release_version()

    def download_url(self, target: Optional[str] = None) -> str:
        return DOWNLOAD_URL.format(version=self.version, target=target or detect_target())

    def find_binary(self) -> Optional[Path]:
        """查找 ssserver，优先安装目录"""
        local = self.install_dir / BINARY_NAME
        if local.is_file():
            return local
        found = shutil.which(BINARY_NAME)
        return Path(found) if found else None

    def download(self, url: str, dest: Path) -> Path:
        logger.info("正在下载 %s", url)
        try:
            with request.urlopen(url, timeout=DOWNLOAD_TIMEOUT) as response, open(dest, "wb") as f:
                shutil.copyfileobj(response, f)
        except OSError as e:
            raise InstallError(f"下载失败 {url}: {e}") from e
        return dest

    def extract(self, archive: Path) -> list[Path]:
        """解压发行包中的可执行文件，返回安装的文件列表"""
        self.install_dir.mkdir(parents=True, exist_ok=True)
        installed = []
        try:
            with tarfile.open(archive, "r:*") as tar:
                for member in tar.getmembers():
                    name = Path(member.name).name
                    # 只接受包根目录下的普通文件
                    if not member.isfile() or member.name not in (name, f"./{name}"):
                        logger.debug("跳过 %s", member.name)
                        continue
                    source = tar.extractfile(member)
                    if source is None:
                        continue
                    target = self.install_dir / name
                    # 运行中的二进制不能直接覆盖写 (ETXTBSY)，先写临时文件再替换
                    fd, tmp_name = tempfile.mkstemp(prefix=f".{name}.", dir=self.install_dir)
                    try:
                        with source, os.fdopen(fd, "wb") as f:
                            shutil.copyfileobj(source, f)
                        os.chmod(tmp_name, 0o755)
                        os.replace(tmp_name, target)
                    except BaseException:
                        Path(tmp_name).unlink(missing_ok=True)
                        raise
                    installed.append(target)
        except (tarfile.TarError, OSError) as e:
            raise InstallError(f"解压失败 {archive}: {e}") from e

        if not any(p.name == BINARY_NAME for p in installed):
            raise InstallError(f"发行包中没有 {BINARY_NAME}")
        logger.info("已安装 %s", ", ".join(p.name for p in installed))
        return installed

    def install(self) -> Path:
        """下载并安装，返回 ssserver 路径"""
        url = self.download_url()
        with tempfile.TemporaryDirectory() as tmp:
            archive = self.download(url, Path(tmp) / url.rsplit("/", 1)[-1])
            self.extract(archive)
        return self.install_dir / BINARY_NAME

    def remove(self) -> list[Path]:
        """删除安装目录中的发行版二进制"""
        removed = []
        for name in RELEASE_BINARIES:
            path = self.install_dir / name
            if path.exists():
                path.unlink()
                removed.append(path)
        return removed
