"""终端彩色输出"""

import os
import sys


def _supports_color() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("FORCE_COLOR"):
        return True
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _fmt(code: str, text: str) -> str:
    return f"\033[{code}m{text}\033[0m" if _supports_color() else text


def red(text: str) -> str:
    return _fmt("31", text)


def green(text: str) -> str:
    return _fmt("32", text)


def yellow(text: str) -> str:
    return _fmt("33", text)


def blue(text: str) -> str:
    return _fmt("36", text)


def print_ok(text: str) -> None:
    print(green(text))


def print_warn(text: str) -> None:
    print(yellow(text))


def print_err(text: str) -> None:
    print(red(text), file=sys.stderr)


def print_info(text: str) -> None:
    print(blue(text))
