"""系统命令封装"""

import logging
import os
import subprocess
from typing import Callable, Optional

logger = logging.getLogger(__name__)

Runner = Callable[[list[str]], tuple[bool, str]]


def run_command(args: list[str], timeout: Optional[float] = None) -> tuple[bool, str]:
    """执行命令，返回 (是否成功, 输出)"""
    logger.debug("执行命令: %s", " ".join(args))
    try:
        result = subprocess.run(
            args,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError:
        return False, f"未找到命令: {args[0]}"
    except subprocess.TimeoutExpired:
        return False, f"命令执行超时: {args[0]}"

    if result.returncode == 0:
        return True, result.stdout.strip()
    return False, result.stderr.strip() or result.stdout.strip()


def is_root() -> bool:
    return os.geteuid() == 0
