from collections.abc import Callable

from app.logging.logger import Log

ProgressCallback = Callable[[int], None]


class ProgressReporter:
    """Forwards percentages to an optional sink, never going backwards.

    Values are clamped to 0..100 and repeated values are not re-sent. A failing
    sink is logged and ignored so display problems cannot abort processing.
    """

    def __init__(self, sink: ProgressCallback | None = None) -> None:
        self._sink = sink
        self._last: int | None = None

    @property
    def last(self) -> int | None:
        return self._last

    def report(self, percentage: float) -> None:
        value = int(max(0, min(100, percentage)))
        if self._last is not None and value <= self._last:
            return
        self._last = value
        if self._sink is None:
            return
        try:
            self._sink(value)
        except Exception as exc:
            Log.warning(f"Progress callback raised at {value}%: {exc}")

    def complete(self) -> None:
        self.report(100)
