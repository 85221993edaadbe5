"""Aggregator: スナップショットから日別・月別の集計を導出する純粋関数群

すべての関数は (snapshot, 参照日) のみに依存し、副作用を持たない。
日付のキーは保存時に正規化された YYYY-MM-DD 文字列をそのまま使う。
"""

from __future__ import annotations

import calendar
import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional, Tuple

from .models import Item, ItemKind, Snapshot, Task

PREVIEW_LIMIT = 3
PREVIEW_CHARS = 6
GRID_CELLS = 42
MILESTONE_LIMIT = 5

WEEKDAY_LABELS = "月火水木金土日"


@dataclass(frozen=True, slots=True)
class DayStats:
    total_tasks: int
    completed_tasks: int
    percent: int


@dataclass(frozen=True, slots=True)
class DayFlag:
    day: int
    date: str
    has_tasks: bool
    completed: bool
    is_today: bool


@dataclass(frozen=True, slots=True)
class MonthStats:
    days_with_tasks: int
    days_fully_completed: int
    percent: int
    per_day_flags: Tuple[DayFlag, ...]


@dataclass(frozen=True, slots=True)
class Preview:
    item_id: int
    kind: ItemKind
    label: str
    text: str
    tone: str  # completed | high | medium | low | note


@dataclass(frozen=True, slots=True)
class CalendarCell:
    day: int
    date: str
    in_month: bool
    is_today: bool = False
    has_items: bool = False
    fully_completed: bool = False
    previews: Tuple[Preview, ...] = ()
    overflow: int = 0


@dataclass(frozen=True, slots=True)
class ProgressView:
    scope: str  # day | month
    total: int
    completed: int
    percent: int
    tier: str
    title: str
    message: str
    summary: str
    tone: str
    milestones: Tuple[bool, ...] = ()


@dataclass(frozen=True, slots=True)
class Overview:
    note_count: int
    note_dates: int
    task_count: int


DAY_MOTIVATIONS = {
    "no_tasks": ("準備OK", "最初のタスクを追加しましょう！"),
    "just_started": ("スタート", "良いスタートは成功の半分です！"),
    "in_progress": ("継続中", "このペースで、よくできています！"),
    "half_way": ("半分達成", "もう半分終わりました、その調子！"),
    "almost_done": ("あと少し", "ゴールはもうすぐ、ラストスパート！"),
    "completed": ("全部完了", "すばらしい！今日のタスクはすべて完了です！"),
}

MONTH_MOTIVATIONS = {
    "no_tasks": "タスクを追加して今月の記録を始めましょう！",
    "just_started": "良いスタートです！このリズムを保ちましょう！",
    "in_progress": "継続は力なり。よくできています！",
    "half_way": "半分まで来ました！引き続き頑張りましょう！",
    "almost_done": "今月の目標まであと少し！",
    "completed": "おめでとうございます！今月のタスクはすべて完了です！",
}

MONTH_TITLE = "今月の達成状況"


def js_round(value: float) -> int:
    """Math.round と同じ四捨五入（0.5 は切り上げ）"""
    return int(math.floor(value + 0.5))


def percent_of(completed: int, total: int) -> int:
    if total == 0:
        return 0
    return js_round(completed / total * 100)


def day_key(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def items_on_day(snapshot: Snapshot, day: str) -> List[Item]:
    """未完了タスク → ノート → 完了済みタスク（各グループ内は追加順）"""
    tasks = snapshot.tasks_on(day)
    return [
        *[task for task in tasks if not task.completed],
        *snapshot.notes_on(day),
        *[task for task in tasks if task.completed],
    ]


def day_items(snapshot: Snapshot, day: str) -> List[Item]:
    """詳細モーダル用の並び：タスク（追加順）→ ノート"""
    return [*snapshot.tasks_on(day), *snapshot.notes_on(day)]


def day_stats(snapshot: Snapshot, day: str) -> DayStats:
    tasks = snapshot.tasks_on(day)
    completed = sum(1 for task in tasks if task.completed)
    return DayStats(
        total_tasks=len(tasks),
        completed_tasks=completed,
        percent=percent_of(completed, len(tasks)),
    )


def month_stats(snapshot: Snapshot, year: int, month: int, today: Optional[date] = None) -> MonthStats:
    """タスクが1件以上あり、すべて完了している日を「完了日」と数える"""
    days_in_month = calendar.monthrange(year, month)[1]
    flags = []
    with_tasks = 0
    fully_completed = 0

    for day in range(1, days_in_month + 1):
        key = f"{year:04d}-{month:02d}-{day:02d}"
        stats = day_stats(snapshot, key)
        has_tasks = stats.total_tasks > 0
        completed = has_tasks and stats.completed_tasks == stats.total_tasks
        if has_tasks:
            with_tasks += 1
            if completed:
                fully_completed += 1
        flags.append(
            DayFlag(
                day=day,
                date=key,
                has_tasks=has_tasks,
                completed=completed,
                is_today=today is not None and day_key(today) == key,
            )
        )

    return MonthStats(
        days_with_tasks=with_tasks,
        days_fully_completed=fully_completed,
        percent=percent_of(fully_completed, with_tasks),
        per_day_flags=tuple(flags),
    )


def preview_label(text: str) -> str:
    if len(text) > PREVIEW_CHARS:
        return text[:PREVIEW_CHARS] + "..."
    return text


def _preview(item: Item) -> Preview:
    if isinstance(item, Task):
        tone = "completed" if item.completed else item.priority.value
    else:
        tone = "note"
    return Preview(item_id=item.id, kind=item.kind, label=preview_label(item.text), text=item.text, tone=tone)


def calendar_grid(snapshot: Snapshot, year: int, month: int, today: Optional[date] = None) -> List[CalendarCell]:
    """日曜始まり6週（42マス）の月間グリッド"""
    first = date(year, month, 1)
    leading = (first.weekday() + 1) % 7
    days_in_month = calendar.monthrange(year, month)[1]

    cells: List[CalendarCell] = []
    for offset in range(leading, 0, -1):
        other = first - timedelta(days=offset)
        cells.append(CalendarCell(day=other.day, date=day_key(other), in_month=False))

    for day in range(1, days_in_month + 1):
        current = date(year, month, day)
        key = day_key(current)
        tasks = snapshot.tasks_on(key)
        everything = [*tasks, *snapshot.notes_on(key)]
        cells.append(
            CalendarCell(
                day=day,
                date=key,
                in_month=True,
                is_today=today == current,
                has_items=bool(everything),
                fully_completed=bool(tasks) and all(task.completed for task in tasks),
                previews=tuple(_preview(item) for item in everything[:PREVIEW_LIMIT]),
                overflow=max(0, len(everything) - PREVIEW_LIMIT),
            )
        )

    last = date(year, month, days_in_month)
    for offset in range(1, GRID_CELLS - len(cells) + 1):
        other = last + timedelta(days=offset)
        cells.append(CalendarCell(day=other.day, date=day_key(other), in_month=False))

    return cells


def progress_tier(total: int, completed: int, percent: int) -> str:
    if total == 0:
        return "no_tasks"
    if completed == 0:
        return "just_started"
    if percent < 25:
        return "in_progress"
    if percent < 50:
        return "half_way"
    if percent < 100:
        return "almost_done"
    return "completed"


def progress_tone(total: int, percent: int) -> str:
    if total == 0:
        return "empty"
    if percent == 100:
        return "completed"
    if percent >= 50:
        return "half"
    return "normal"


def milestones(total: int, completed: int) -> Tuple[bool, ...]:
    return tuple(index < completed for index in range(min(total, MILESTONE_LIMIT)))


def day_progress(snapshot: Snapshot, day: str) -> ProgressView:
    stats = day_stats(snapshot, day)
    tier = progress_tier(stats.total_tasks, stats.completed_tasks, stats.percent)
    title, message = DAY_MOTIVATIONS[tier]
    if stats.total_tasks == 0:
        summary = "タスクなし"
    else:
        summary = f"{stats.completed_tasks} / {stats.total_tasks} 完了"
    return ProgressView(
        scope="day",
        total=stats.total_tasks,
        completed=stats.completed_tasks,
        percent=stats.percent,
        tier=tier,
        title=title,
        message=message,
        summary=summary,
        tone=progress_tone(stats.total_tasks, stats.percent),
        milestones=milestones(stats.total_tasks, stats.completed_tasks),
    )


def month_progress(stats: MonthStats) -> ProgressView:
    tier = progress_tier(stats.days_with_tasks, stats.days_fully_completed, stats.percent)
    if stats.days_with_tasks == 0:
        summary = "タスクなし"
    else:
        summary = f"{stats.days_fully_completed} / {stats.days_with_tasks} 日完了"
    return ProgressView(
        scope="month",
        total=stats.days_with_tasks,
        completed=stats.days_fully_completed,
        percent=stats.percent,
        tier=tier,
        title=MONTH_TITLE,
        message=MONTH_MOTIVATIONS[tier],
        summary=summary,
        tone=progress_tone(stats.days_with_tasks, stats.percent),
    )


def overview(snapshot: Snapshot) -> Overview:
    return Overview(
        note_count=len(snapshot.notes),
        note_dates=len({note.date for note in snapshot.notes}),
        task_count=len(snapshot.tasks),
    )


def format_day_label(day: str, today: date) -> str:
    """今日・昨日はそれぞれの語、それ以外は 2024年6月5日(水)"""
    if day == day_key(today):
        return "今日"
    if day == day_key(today - timedelta(days=1)):
        return "昨日"
    value = date.fromisoformat(day)
    return f"{value.year}年{value.month}月{value.day}日({WEEKDAY_LABELS[value.weekday()]})"


def format_month_label(year: int, month: int) -> str:
    return f"{year}年{month}月"
