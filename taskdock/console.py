"""
Information about the terminal taskdock is running in.
"""

import sys


class ConsoleInfo:
    """Reports properties of the controlling terminal"""

    @property
    def stdin_is_tty(self) -> bool:
        """True if standard input is an interactive terminal"""
        try:
            return sys.stdin is not None and sys.stdin.isatty()
        except ValueError:
            # stdin has been closed
            return False
