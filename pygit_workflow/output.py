"""Output handler implementations: console, null, buffered."""

from __future__ import annotations

from colorama import Fore, Style
from tqdm import tqdm

from pygit_workflow.protocols import OutputHandler

SECTION_WIDTH = 50

_LEVEL_COLORS = {
    'success': Fore.GREEN,
    'warning': Fore.YELLOW,
    'error': Fore.RED,
    'debug': Fore.CYAN,
}


def styled(level: str, message: str, indent: int = 0) -> str:
    """Indent a message and color it for its level (info stays uncolored)."""
    color = _LEVEL_COLORS.get(level)
    if color is None or not message:
        return "  " * indent + message
    return "  " * indent + f"{color}{message}{Style.RESET_ALL}"


class ConsoleOutputHandler:
    """Console output with colors, written through tqdm so progress bars stay intact."""

    def __init__(self, verbose: bool = False):
        """Create a console handler. Set verbose=True to enable debug output."""
        self.verbose = verbose

    def info(self, message: str, indent: int = 0) -> None:
        tqdm.write(styled('info', message, indent))

    def success(self, message: str, indent: int = 0) -> None:
        tqdm.write(styled('success', message, indent))

    def warning(self, message: str, indent: int = 0) -> None:
        tqdm.write(styled('warning', message, indent))

    def error(self, message: str, indent: int = 0) -> None:
        tqdm.write(styled('error', message, indent))

    def section(self, title: str) -> None:
        """Print a section header with a divider line."""
        tqdm.write("")
        tqdm.write(title)
        tqdm.write("-" * SECTION_WIDTH)

    def debug(self, message: str) -> None:
        """Print a debug message (only when verbose is enabled)."""
        if self.verbose:
            tqdm.write(styled('debug', f"[DEBUG] {message}"))


class NullOutputHandler:
    """Silent output handler for testing and JSON mode."""

    def info(self, message: str, indent: int = 0) -> None:
        pass

    def success(self, message: str, indent: int = 0) -> None:
        pass

    def warning(self, message: str, indent: int = 0) -> None:
        pass

    def error(self, message: str, indent: int = 0) -> None:
        pass

    def section(self, title: str) -> None:
        pass

    def debug(self, message: str) -> None:
        pass


class BufferedOutputHandler:
    """Collects messages per endpoint so parallel runs print in one block each."""

    def __init__(self):
        """Initialize with an empty message buffer."""
        self.records: list[tuple[str, str, int]] = []

    def info(self, message: str, indent: int = 0) -> None:
        self.records.append(('info', message, indent))

    def success(self, message: str, indent: int = 0) -> None:
        self.records.append(('success', message, indent))

    def warning(self, message: str, indent: int = 0) -> None:
        self.records.append(('warning', message, indent))

    def error(self, message: str, indent: int = 0) -> None:
        self.records.append(('error', message, indent))

    def section(self, title: str) -> None:
        self.records.append(('section', title, 0))

    def debug(self, message: str) -> None:
        self.records.append(('debug', message, 0))

    @property
    def messages(self) -> list[str]:
        """Buffered messages as plain indented lines."""
        return ["  " * indent + message for _level, message, indent in self.records]

    def flush_to(self, target: OutputHandler) -> None:
        """Replay all buffered messages on a target handler and clear the buffer."""
        for level, message, indent in self.records:
            if level in ('section', 'debug'):
                getattr(target, level)(message)
            else:
                getattr(target, level)(message, indent=indent)
        self.records.clear()
