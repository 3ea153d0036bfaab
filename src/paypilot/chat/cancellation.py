"""Per-request cancellation."""


class CancellationToken:
    """Marks a submission as abandoned; its late response is discarded."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled
