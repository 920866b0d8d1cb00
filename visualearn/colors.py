"""
VisuaLearn terminal colors.

Shared color constants for the interactive chat loop and configuration
messages. Uses colorama for cross-platform compatibility.
"""

from colorama import init, Fore, Style

init(autoreset=True)


class Colors:
    """Terminal colors for better user experience."""
    HEADER = Fore.MAGENTA
    BLUE = Fore.BLUE
    CYAN = Fore.CYAN
    GREEN = Fore.GREEN
    WARNING = Fore.YELLOW
    FAIL = Fore.RED
    ENDC = Style.RESET_ALL
    BOLD = Style.BRIGHT
    DIM = Style.DIM
