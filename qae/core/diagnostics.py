import logging
from typing import List, TextIO, Tuple

logger = logging.getLogger(__name__)


class Diagnostics:
    """
    Sink for recoverable problems (unreadable file, broken symlink, failed git call).
    Collectors report here instead of writing to stderr; the caller decides
    when and where the collected messages are rendered.
    """

    def __init__(self, prog: str = "qae"):
        self.prog = prog
        self.items: List[Tuple[str, str]] = []
        self._once = set()

    def report(self, scope: str, message: str) -> None:
        logger.debug("diagnostic scope=%r message=%r", scope, message)
        self.items.append((scope, message))

    def report_once(self, scope: str, message: str) -> None:
        if (scope, message) in self._once:
            return
        self._once.add((scope, message))
        self.report(scope, message)

    def __len__(self) -> int:
        return len(self.items)

    def format(self, scope: str, message: str) -> str:
        if scope:
            return f"{self.prog}: {scope}: {message}"
        return f"{self.prog}: {message}"

    def render(self, stream: TextIO) -> None:
        for scope, message in self.items:
            print(self.format(scope, message), file=stream)
        self.items.clear()
