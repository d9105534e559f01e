"""CLI output utilities and formatting."""

from colorama import Fore, Style

BANNER = f"""
{Fore.CYAN}{Style.BRIGHT}twig{Style.RESET_ALL} {Fore.WHITE}- a minimal content-addressed version control engine{Style.RESET_ALL}
"""

STATUS_COLORS = {
    'A': Fore.GREEN,
    'M': Fore.YELLOW,
    'D': Fore.RED,
    'U': Fore.MAGENTA,
}


def success(message: str) -> str:
    """Format success message in green."""
    return f"{Fore.GREEN}✓ {message}{Style.RESET_ALL}"


def info(message: str) -> str:
    """Format info message in cyan."""
    return f"{Fore.CYAN}→ {message}{Style.RESET_ALL}"


def warning(message: str) -> str:
    """Format warning message in yellow."""
    return f"{Fore.YELLOW}⚠ {message}{Style.RESET_ALL}"


def error(message: str) -> str:
    """Format error message in red."""
    return f"{Fore.RED}✗ {message}{Style.RESET_ALL}"


def status_line(code: str, path: str) -> str:
    """Format a name-status line (``A path``) colored by its code."""
    color = STATUS_COLORS.get(code, '')
    return f"{color}{code}{Style.RESET_ALL} {path}"
