class DayplanError(Exception):
    pass


class NotFoundError(DayplanError):
    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"task not found: {task_id}")


class ValidationError(DayplanError):
    pass


class InvalidStateError(DayplanError):
    pass


class StoreError(DayplanError):
    def __init__(self, message: str, constraint: bool = False):
        self.constraint = constraint
        super().__init__(message)


class AmbiguousError(DayplanError):
    def __init__(self, ref: str, count: int = 0, sample: list[str] | None = None):
        self.ref = ref
        self.count = count
        self.sample = sample or []
        count_note = f" ({count})" if count else ""
        note = f": {', '.join(self.sample)}" if self.sample else ""
        super().__init__(f"ambiguous ref '{ref}' matches multiple tasks{count_note}{note}")


class NotificationError(DayplanError):
    """Raised after every expired timer was offered to the sink and some calls failed."""

    def __init__(self, failures: dict[str, Exception], observations: list | None = None):
        self.failures = failures
        self.observations = observations or []
        ids = ", ".join(task_id[:8] for task_id in failures)
        super().__init__(f"timer notification failed for {len(failures)} task(s): {ids}")
