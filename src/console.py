"""
Console: the interactive channel between the user and the controller.

The controller only talks to this interface, so tests can replace it with a
scripted double that feeds canned input lines and captures output.
"""

import sys
import time

SPINNER_FRAMES = ["⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏"]
FRAME_INTERVAL = 0.1  # seconds

CLEAR_SCREEN = "\033[2J\033[H"


class TerminalConsole:
    """
    stdin/stdout implementation of the interactive channel.

    Args:
        loading_seconds: Duration of the loading animation (0 disables it).
        stream: Output stream (default: sys.stdout).
    """

    def __init__(self, loading_seconds: float = 1.5, stream=None):
        self.loading_seconds = loading_seconds
        self.stream = stream or sys.stdout

    def prompt(self, text: str) -> str:
        """Show `text` and return the line the user typed, without the newline."""
        self.stream.write(text)
        self.stream.flush()
        return input()

    def show(self, line: str = "") -> None:
        self.stream.write(f"{line}\n")
        self.stream.flush()

    def clear(self) -> None:
        if self.stream.isatty():
            self.stream.write(CLEAR_SCREEN)
            self.stream.flush()

    def loading(self, message: str) -> None:
        """Spin for `loading_seconds` next to `message`. Purely cosmetic."""
        if self.loading_seconds <= 0:
            return

        frames = max(1, int(self.loading_seconds / FRAME_INTERVAL))
        for i in range(frames):
            frame = SPINNER_FRAMES[i % len(SPINNER_FRAMES)]
            self.stream.write(f"\r{frame} {message}")
            self.stream.flush()
            time.sleep(FRAME_INTERVAL)
        self.stream.write("\r" + " " * (len(message) + 2) + "\r")
        self.stream.flush()
