"""Console-backed mount point and modal surface, used by the actions."""

from typing import Optional, TextIO


class ConsoleMountPoint:
    """Prints each render to a text stream (stdout when none is given)."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream

    def render(self, text: str) -> None:
        print(text, file=self.stream)


class ConsoleModal:
    """Prints a line when the loading modal opens and when it closes."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream

    def open(self, message: str) -> None:
        print(f"⏳ {message}", file=self.stream)

    def close(self) -> None:
        print("✓ Library ready", file=self.stream)
