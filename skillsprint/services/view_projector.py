"""
View projections of a task collection

Every function here is pure: it takes a task sequence plus filter/sort
settings and returns a new display structure. Nothing is fetched or written,
and the input tasks are never modified.
"""

import math
from collections import OrderedDict
from datetime import date, timedelta
from typing import Dict, Iterable, List, Mapping, Optional

from skillsprint.config.constants import (
    STATUS_RANK,
    PRIORITY_RANK,
    CALENDAR_MAX_TASKS_PER_DAY,
    TIMELINE_SCALE_TICKS,
)
from skillsprint.models.category import Category
from skillsprint.models.task import Task, TaskFilter, TaskStatus
from skillsprint.models.view import (
    Board,
    BoardColumn,
    CalendarDay,
    CalendarMonth,
    SortMode,
    Timeline,
    TimelineEntry,
)
from skillsprint.utils.date_utils import start_of_week, end_of_week, add_months

BOARD_COLUMNS = [
    (TaskStatus.TODO, "To Do"),
    (TaskStatus.IN_PROGRESS, "In Progress"),
    (TaskStatus.DONE, "Done"),
]

UNSET_PRIORITY_RANK = len(PRIORITY_RANK)

Categories = Optional[Mapping[str, Category]]


def _creation_key(task: Task):
    created = task.created_at
    return (created is None, created.timestamp() if created else 0.0)


def custom_order_key(task: Task):
    """Order index ascending, unindexed tasks last, then creation order"""
    return (task.order_index is None, task.order_index or 0, _creation_key(task))


def filter_tasks(tasks: Iterable[Task], task_filter: Optional[TaskFilter] = None) -> List[Task]:
    """
    Keep tasks matching the filter, preserving their order

    Args:
        tasks: Task sequence
        task_filter: Status / project subset / category filter (None keeps all)

    Returns:
        Filtered list
    """
    if task_filter is None or task_filter.is_unfiltered:
        return list(tasks)

    project_ids = set(task_filter.project_ids or ())
    result = []
    for task in tasks:
        if task_filter.status is not None and task.status != task_filter.status:
            continue
        if project_ids and task.project_id not in project_ids:
            continue
        if task_filter.category_id is not None and task.category_id != task_filter.category_id:
            continue
        result.append(task)
    return result


def sort_tasks(
    tasks: Iterable[Task],
    sort_mode: SortMode = SortMode.CUSTOM,
    categories: Categories = None,
) -> List[Task]:
    """
    Stable sort by the key belonging to sort_mode

    - custom: order_index, unindexed last, ties by creation order
    - status: todo, in_progress, done
    - priority: high, medium, low, unset
    - category: category name (case-insensitive), unset or unknown last
    - due_date: ascending
    """
    sort_mode = SortMode(sort_mode)
    categories = categories or {}

    if sort_mode == SortMode.CUSTOM:
        key = custom_order_key
    elif sort_mode == SortMode.STATUS:
        key = lambda task: STATUS_RANK[task.status.value]
    elif sort_mode == SortMode.PRIORITY:
        key = lambda task: PRIORITY_RANK[task.priority.value] if task.priority else UNSET_PRIORITY_RANK
    elif sort_mode == SortMode.CATEGORY:
        def key(task: Task):
            category = categories.get(task.category_id) if task.category_id else None
            if category is None:
                return (1, "")
            return (0, category.name.casefold())
    else:
        key = lambda task: task.due_date

    return sorted(tasks, key=key)


def project_list(
    tasks: Iterable[Task],
    task_filter: Optional[TaskFilter] = None,
    sort_mode: SortMode = SortMode.CUSTOM,
    categories: Categories = None,
) -> List[Task]:
    """Filter, then sort: the sequence shown by the list view"""
    return sort_tasks(filter_tasks(tasks, task_filter), sort_mode, categories)


def project_board(
    tasks: Iterable[Task],
    task_filter: Optional[TaskFilter] = None,
) -> Board:
    """Group tasks into the three status columns, custom order within each"""
    sequence = project_list(tasks, task_filter, SortMode.CUSTOM)
    columns = []
    for status, title in BOARD_COLUMNS:
        columns.append(
            BoardColumn(
                status=status,
                title=title,
                tasks=[task for task in sequence if task.status == status],
            )
        )
    return Board(columns=columns)


def _group_by_due_date(sequence: List[Task]) -> "OrderedDict[date, List[Task]]":
    groups: "OrderedDict[date, List[Task]]" = OrderedDict()
    for task in sequence:
        groups.setdefault(task.due_date, []).append(task)
    return groups


def _calendar_day(day: date, day_tasks: List[Task], max_per_day: int, in_month: bool = True) -> CalendarDay:
    return CalendarDay(
        day=day,
        tasks=day_tasks[:max_per_day],
        total=len(day_tasks),
        in_month=in_month,
    )


def project_calendar(
    tasks: Iterable[Task],
    task_filter: Optional[TaskFilter] = None,
    sort_mode: SortMode = SortMode.CUSTOM,
    categories: Categories = None,
    max_per_day: int = CALENDAR_MAX_TASKS_PER_DAY,
) -> List[CalendarDay]:
    """
    Group tasks by due date

    Each day shows at most max_per_day tasks but keeps the full count,
    so five tasks on one day yield three visible plus "+2 more".
    """
    sequence = project_list(tasks, task_filter, sort_mode, categories)
    groups = _group_by_due_date(sequence)
    return [
        _calendar_day(day, groups[day], max_per_day)
        for day in sorted(groups)
    ]


def calendar_month(
    tasks: Iterable[Task],
    year: int,
    month: int,
    task_filter: Optional[TaskFilter] = None,
    sort_mode: SortMode = SortMode.CUSTOM,
    categories: Categories = None,
    max_per_day: int = CALENDAR_MAX_TASKS_PER_DAY,
) -> CalendarMonth:
    """
    Build the month grid: full Sunday-to-Saturday weeks covering the month
    """
    first_day = date(year, month, 1)
    last_day = add_months(first_day, 1) - timedelta(days=1)
    grid_start = start_of_week(first_day)
    grid_end = end_of_week(last_day)

    groups = _group_by_due_date(project_list(tasks, task_filter, sort_mode, categories))

    weeks: List[List[CalendarDay]] = []
    day = grid_start
    while day <= grid_end:
        week = []
        for _ in range(7):
            week.append(
                _calendar_day(day, groups.get(day, []), max_per_day, in_month=(day.month == month))
            )
            day += timedelta(days=1)
        weeks.append(week)

    return CalendarMonth(year=year, month=month, weeks=weeks)


def _effective_start(task: Task) -> date:
    if task.start_date and task.start_date <= task.due_date:
        return task.start_date
    return task.due_date


def project_timeline(
    tasks: Iterable[Task],
    task_filter: Optional[TaskFilter] = None,
    sort_mode: SortMode = SortMode.CUSTOM,
    categories: Categories = None,
    ticks: int = TIMELINE_SCALE_TICKS,
) -> Optional[Timeline]:
    """
    Place tasks on a shared date axis

    The axis spans from the earliest start (or due) date to the latest due
    date. A task without a start date is a one-day bar ending at its due date.

    Returns:
        Timeline, or None when there are no tasks to show
    """
    sequence = project_list(tasks, task_filter, sort_mode, categories)
    if not sequence:
        return None

    min_date = min(_effective_start(task) for task in sequence)
    max_date = max(task.due_date for task in sequence)
    total_days = (max_date - min_date).days + 1

    step = max(math.ceil(total_days / ticks), 1)
    scale = [min_date + timedelta(days=offset) for offset in range(0, total_days + 1, step)]

    entries = []
    for task in sequence:
        start = _effective_start(task)
        offset_days = (start - min_date).days
        duration_days = (task.due_date - start).days or 1
        entries.append(
            TimelineEntry(
                task=task,
                start=start,
                end=task.due_date,
                offset_days=offset_days,
                duration_days=duration_days,
                start_percent=offset_days / total_days * 100,
                width_percent=duration_days / total_days * 100,
            )
        )

    return Timeline(
        min_date=min_date,
        max_date=max_date,
        total_days=total_days,
        scale=scale,
        entries=entries,
    )


def category_index(categories: Iterable[Category]) -> Dict[str, Category]:
    """Map category ID to category for sort and lookup"""
    return {category.id: category for category in categories}
