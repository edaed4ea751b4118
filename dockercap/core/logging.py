import sys

_verbose = False


# ANSI Escape Codes for Colors
class Color:
    BLUE = "\033[94m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"
    BOLD = "\033[1m"
    END = "\033[0m"


def set_verbose(enabled: bool) -> None:
    global _verbose
    _verbose = bool(enabled)


def info(msg: str):
    print(f"{Color.CYAN}ℹ {msg}{Color.END}")


def verbose(msg: str):
    """Print only when --verbose is active."""
    if _verbose:
        print(f"{Color.GRAY}· {msg}{Color.END}")


def success(msg: str):
    print(f"{Color.GREEN}✅ {msg}{Color.END}")


def warning(msg: str):
    print(f"{Color.YELLOW}⚠️ {msg}{Color.END}")


def error(msg: str):
    print(f"{Color.RED}❌ {msg}{Color.END}", file=sys.stderr)


def highlight(msg: str) -> str:
    return f"{Color.BOLD}{msg}{Color.END}"


def step(msg: str):
    print(f"{Color.BLUE}➜ {Color.BOLD}{msg}{Color.END}")
