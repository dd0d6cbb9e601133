from __future__ import annotations

import sys
from typing import Optional, TextIO

_BAR_WIDTH = 60


class ProgressBar:
    """``\\r 42% [|||||     ]`` style progress line, finished with a newline at 100%."""

    def __init__(self, total: int, *, stream: Optional[TextIO] = None, width: int = _BAR_WIDTH):
        self.total = max(1, int(total))
        self.width = max(1, int(width))
        self.stream = sys.stderr if stream is None else stream
        self._last = -1

    def render(self, done: int) -> str:
        frac = min(1.0, max(0.0, float(done) / self.total))
        pct = int(frac * 100.0)
        fill = int(frac * self.width)
        line = f"\r{pct:3d}% [{'|' * fill}{' ' * (self.width - fill)}]"
        if pct == 100:
            line += " \n"
        return line

    def update(self, done: int) -> None:
        pct = int(min(1.0, float(done) / self.total) * 100.0)
        if pct == self._last:
            return
        self._last = pct
        self.stream.write(self.render(done))
        self.stream.flush()
