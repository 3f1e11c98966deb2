"""命令行接口"""

import argparse
import logging
import sys
from enum import Enum
from typing import Optional

from . import __version__
from .config import (
    CONFIG_FILE, DEFAULT_METHOD, METHODS, PORT_MAX, PORT_MIN,
    env_overrides, generate_password, generate_random_port,
)
from .console import blue, green, print_err, print_info, print_ok, print_warn, red, yellow
from .manager import ShadowsocksManager
from .models import ServerConfig, ServiceState, validate_port
from .store import ConfigNotFoundError
from .system import is_root

logger = logging.getLogger(__name__)


class CancelInput(Exception):
    """用户取消输入"""
    pass


class Action(Enum):
    INSTALL = "install"
    START = "start"
    RESTART = "restart"
    STOP = "stop"
    SHOW_INFO = "showInfo"
    SHOW_QR = "showQR"
    SHOW_LOG = "showLog"
    RECONFIG = "reconfig"
    UNINSTALL = "uninstall"
    MENU = "menu"


MENU_ITEMS = [
    ("1", "安装/重装", Action.INSTALL),
    ("2", "启动", Action.START),
    ("3", "重启", Action.RESTART),
    ("4", "停止", Action.STOP),
    ("5", "查看配置", Action.SHOW_INFO),
    ("6", "显示二维码", Action.SHOW_QR),
    ("7", "查看日志", Action.SHOW_LOG),
    ("8", "修改配置", Action.RECONFIG),
    ("9", "卸载", Action.UNINSTALL),
]


def get_input_optional(prompt: str, default: str = "") -> str:
    """获取可选输入，Ctrl+C 取消，输入结束 (EOF) 时使用默认值"""
    try:
        if default:
            value = input(f"{prompt} [{default}]: ").strip()
            return value if value else default
        return input(f"{prompt}: ").strip()
    except EOFError:
        print()
        return default
    except KeyboardInterrupt:
        print()
        raise CancelInput()


# ========== 交互式配置 ==========

def ask_password(preset: Optional[str] = None) -> str:
    password = preset or get_input_optional("请设置 SS 密码（为空则随机生成）")
    if not password:
        password = generate_password()
    print_info(f"密码： {password}")
    return password


def ask_port(preset: Optional[str] = None) -> int:
    """端口不合法时重新询问"""
    value = preset
    while True:
        if value is None:
            value = get_input_optional(f"请设置端口 [{PORT_MIN}-{PORT_MAX}]（为空随机）")
            if not value:
                value = str(generate_random_port())
        port = validate_port(value)
        if port is not None:
            print_info(f"端口： {port}")
            return port
        print_warn(f"端口无效，需在 {PORT_MIN}-{PORT_MAX} 之间。")
        value = None


def ask_method(preset: Optional[str] = None) -> str:
    if preset in METHODS:
        method = preset
    else:
        if preset:
            print_warn(f"不支持的加密方式 {preset}，请重新选择。")
        print(red("请选择加密方式") + "（推荐 chacha20-ietf-poly1305 或 aes-256-gcm）：")
        for i, name in enumerate(METHODS, 1):
            print(f"  {i}) {name}")
        default = str(METHODS.index(DEFAULT_METHOD) + 1)
        choice = get_input_optional(f"选择 [1-{len(METHODS)}]", default)
        if choice.isdigit() and 1 <= int(choice) <= len(METHODS):
            method = METHODS[int(choice) - 1]
        else:
            method = DEFAULT_METHOD
    print_info(f"加密方式： {method}")
    return method


def ask_config() -> ServerConfig:
    """询问端口/密码/加密方式，已设置的环境变量跳过对应问题"""
    overrides = env_overrides()
    print()
    password = ask_password(overrides.get("password"))
    print()
    port = ask_port(overrides.get("port"))
    print()
    method = ask_method(overrides.get("method"))
    return ServerConfig(server_port=port, password=password, method=method)


# ========== 各项操作 ==========

def describe_state(state: ServiceState) -> str:
    if state is ServiceState.RUNNING:
        return f"{green('已安装')} {green('正在运行')}"
    if state is ServiceState.STOPPED:
        return f"{green('已安装')} {yellow('未运行')}"
    return red("未安装")


def _report_running(running: bool, action: str) -> None:
    if running:
        print_ok(f"Shadowsocks-Rust {action}成功。")
    else:
        print_err(f"Shadowsocks-Rust {action}失败，请查看日志。")


def show_info(manager: ShadowsocksManager) -> None:
    if manager.state() is ServiceState.ABSENT or not manager.is_configured():
        print_err("未安装或未配置。")
        return
    info = manager.get_info()
    state = green("正在运行") if info.state is ServiceState.RUNNING else yellow("未运行")
    print("=" * 44)
    print(f" 运行状态：{state}")
    print(f" 配置文件：{info.config_path}")
    print()
    print(" SS 信息：")
    print(f"   IP(address):  {info.host}")
    print(f"   端口(port):   {info.config.server_port}")
    print(f"   密码(password): {info.config.password}")
    print(f"   加密(method): {info.config.method}")
    print()
    print(" SS 链接：")
    print(f"   {blue(info.link)}")


def show_qr(manager: ShadowsocksManager) -> None:
    if not manager.is_configured():
        print_err("未安装或未配置。")
        return
    link, rendered = manager.show_qr()
    if not rendered:
        print_warn("无法显示二维码，请使用链接：")
    print(link)


def show_log(manager: ShadowsocksManager) -> None:
    success, output = manager.get_log()
    if success:
        print(output)
    else:
        logger.warning("读取日志失败: %s", output)


def _report_firewall(manager: ShadowsocksManager, port: int, opened: list[str]) -> None:
    name = manager.firewall.name
    if name == "none":
        return
    if opened:
        print_ok(f"已通过 {name} 放行端口 {', '.join(opened)}")
    else:
        print_info(f"{name} 已放行端口 {port}/tcp, {port}/udp")


def install(manager: ShadowsocksManager) -> None:
    config = ask_config()
    print()
    running, opened = manager.install(config)
    _report_firewall(manager, config.server_port, opened)
    _report_running(running, "启动")
    show_info(manager)


def reconfig(manager: ShadowsocksManager) -> None:
    if not manager.is_configured():
        raise ConfigNotFoundError("未安装，无法修改配置。")
    config = ask_config()
    running, opened = manager.reconfig(config)
    _report_firewall(manager, config.server_port, opened)
    _report_running(running, "重启")
    show_info(manager)


def uninstall(manager: ShadowsocksManager) -> None:
    manager.uninstall()
    print_ok("已卸载 Shadowsocks-Rust，并清理配置。")


def dispatch(action: Action, manager: ShadowsocksManager) -> None:
    """执行单个操作"""
    logger.debug("执行操作: %s", action.value)
    if action is Action.INSTALL:
        install(manager)
    elif action is Action.START:
        _report_running(manager.start(), "启动")
    elif action is Action.RESTART:
        _report_running(manager.restart(), "重启")
    elif action is Action.STOP:
        manager.stop()
        print_info("Shadowsocks-Rust 已停止。")
    elif action is Action.SHOW_INFO:
        show_info(manager)
    elif action is Action.SHOW_QR:
        show_qr(manager)
    elif action is Action.SHOW_LOG:
        show_log(manager)
    elif action is Action.RECONFIG:
        reconfig(manager)
    elif action is Action.UNINSTALL:
        uninstall(manager)
    elif action is Action.MENU:
        interactive_menu(manager)


def interactive_menu(manager: ShadowsocksManager):
    """交互式菜单"""
    choices = {key: action for key, _, action in MENU_ITEMS}
    while True:
        print("\n" * 2)
        print("#" * 61)
        print("#" + " " * 12 + green("Shadowsocks-Rust 管理脚本（Debian 12/13）") + " " * 7 + "#")
        print("#" * 61)
        print()
        for key, label, _ in MENU_ITEMS:
            print(f"  {green(key + '.')} {label}")
        print(f"  {green('0.')} 退出")
        print()
        print(f"当前状态：{describe_state(manager.state())}")
        print()

        try:
            choice = input(f"请选择 [0-{len(MENU_ITEMS)}]: ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\n再见!")
            break

        if choice == "0":
            print("再见!")
            break
        if choice not in choices:
            print_err("无效选择")
            continue

        try:
            dispatch(choices[choice], manager)
        except CancelInput:
            print("\n已取消")
        except Exception as e:
            print_err(f"错误: {e}")


def create_parser() -> argparse.ArgumentParser:
    """创建命令行参数解析器"""
    actions = "|".join(a.value for a in Action)
    parser = argparse.ArgumentParser(
        prog="ss-manager",
        description="Shadowsocks-Rust 安装/管理工具",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
示例:
  %(prog)s                      # 交互式菜单
  %(prog)s install              # 安装并启动
  SS_PORT=8388 SS_METHOD=aes-256-gcm %(prog)s install  # 免交互安装
  %(prog)s showInfo             # 查看配置和 ss:// 链接
  %(prog)s showQR               # 显示二维码
  %(prog)s uninstall            # 卸载并清理配置

配置文件: {CONFIG_FILE}
"""
    )
    parser.add_argument("action", nargs="?", default=Action.MENU.value, metavar=f"[{actions}]",
                        help="要执行的操作 (默认 menu)")
    parser.add_argument("-v", "--verbose", action="store_true", help="输出调试日志")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


def handle_sigint(sig, frame):
    """Ctrl+C 中断当前操作，以非零状态退出"""
    print("\n已中断")
    sys.exit(1)


def main(argv: Optional[list[str]] = None):
    """主入口"""
    import signal

    signal.signal(signal.SIGINT, handle_sigint)

    parser = create_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if not is_root():
        print_err("请以 root 身份运行此脚本（sudo -i）。")
        sys.exit(1)

    try:
        action = Action(args.action)
    except ValueError:
        print_err(f"无效操作: {args.action}")
        parser.print_usage(sys.stderr)
        sys.exit(1)

    manager = ShadowsocksManager()
    try:
        dispatch(action, manager)
    except CancelInput:
        print("\n已取消")
        sys.exit(1)
    except Exception as e:
        logger.debug("操作失败", exc_info=True)
        print_err(f"错误: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
