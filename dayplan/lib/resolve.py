from dayplan.core.errors import AmbiguousError
from dayplan.core.models import Task
from dayplan.planner import Planner

__all__ = ["find_in_pool", "resolve_task"]

_MIN_ID_PREFIX = 4


def find_in_pool(ref: str, pool: list[Task]) -> Task | None:
    """Match by id, id prefix, exact title, then title substring (case-insensitive)."""
    ref_clean = ref.strip()
    if not ref_clean:
        return None
    ref_lower = ref_clean.lower()

    for task in pool:
        if task.id == ref_clean:
            return task

    matchers = [
        lambda t: len(ref_clean) >= _MIN_ID_PREFIX and t.id.startswith(ref_lower),
        lambda t: t.title.lower() == ref_lower,
        lambda t: ref_lower in t.title.lower(),
    ]
    for matches in matchers:
        hits = [t for t in pool if matches(t)]
        if len(hits) == 1:
            return hits[0]
        if len(hits) > 1:
            raise AmbiguousError(ref_clean, len(hits), [t.title for t in hits[:3]])
    return None


def resolve_task(planner: Planner, ref: str) -> Task:
    overview = planner.get_overview()
    pool = overview.today + overview.rolled_over + overview.upcoming
    task = find_in_pool(ref, pool)
    if task is None:
        # resolved tasks from past days are only reachable by full id
        return planner.get_task(ref.strip())
    return task
