"""ViewSync: ストアの変更やナビゲーションに応じて各表示領域を再計算する

表示領域はマークアップではなくビューモデル（純粋なデータ）として公開する。
1回の描画パスで要求された領域はすべて同じスナップショットから計算され、
まとめて RenderBatch としてシンクへ渡される。

Related Classes: RecordStore (store.py), aggregator
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from . import aggregator
from .aggregator import CalendarCell, Overview, ProgressView
from .exceptions import ValidationError, WrongKindError
from .models import Item, ItemKind, Snapshot, Task, normalize_date
from .status import StatusBoard
from .store import MutationScope, RecordStore

logger = logging.getLogger(__name__)


class Region(str, Enum):
    MONTH_GRID = "month_grid"
    MONTH_PROGRESS = "month_progress"
    DAILY_PANEL = "daily_panel"
    DAILY_PROGRESS = "daily_progress"
    DAY_MODAL = "day_modal"


MONTH_REGIONS = frozenset({Region.MONTH_GRID, Region.MONTH_PROGRESS})
DAY_REGIONS = frozenset({Region.DAILY_PANEL, Region.DAILY_PROGRESS})
MUTATION_REGIONS = MONTH_REGIONS | DAY_REGIONS

_RENDER_ORDER = list(Region)


@dataclass
class ViewState:
    """表示中の月・日、編集中タスク、開いているモーダル"""

    year: int
    month: int
    selected_day: str
    editing_id: Optional[int] = None
    modal_date: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ItemView:
    id: int
    kind: ItemKind
    text: str
    created_at: str
    priority: Optional[str] = None
    completed: bool = False
    editing: bool = False


@dataclass(frozen=True, slots=True)
class MonthGridView:
    year: int
    month: int
    title: str
    cells: Tuple[CalendarCell, ...]
    empty: bool
    overview: Overview


@dataclass(frozen=True, slots=True)
class DailyPanelView:
    date: str
    label: str
    items: Tuple[ItemView, ...]
    editing_id: Optional[int] = None


@dataclass(frozen=True, slots=True)
class DayModalView:
    open: bool
    date: Optional[str] = None
    label: str = ""
    items: Tuple[ItemView, ...] = ()


@dataclass(frozen=True, slots=True)
class Celebration:
    scope: str  # day | month
    key: str


@dataclass(frozen=True, slots=True)
class RenderBatch:
    regions: Dict[Region, Any]
    celebrations: Tuple[Celebration, ...] = ()


ViewSink = Callable[[RenderBatch], None]


class ViewSync:
    """表示領域ごとに idle → rendering → idle を管理する"""

    def __init__(
        self,
        store: RecordStore,
        *,
        today: Callable[[], date] = date.today,
        status: Optional[StatusBoard] = None,
    ):
        self.store = store
        self.status = status
        self._today = today
        current = today()
        self.state = ViewState(
            year=current.year,
            month=current.month,
            selected_day=aggregator.day_key(current),
        )
        self.phases: Dict[Region, str] = {region: "idle" for region in Region}
        self.latest: Dict[Region, Any] = {}
        self.celebrated: Set[str] = set()
        self._sinks: List[ViewSink] = []
        self._pending: Set[Region] = set()
        self._rendering = False
        store.subscribe(self._on_mutation)

    def subscribe(self, sink: ViewSink) -> None:
        self._sinks.append(sink)

    # ---- ナビゲーション ----

    def shift_month(self, delta: int) -> None:
        index = self.state.month - 1 + delta
        year, month = self.state.year + index // 12, index % 12 + 1
        self._check_month(year, month)
        self.state.year = year
        self.state.month = month
        self.request(MONTH_REGIONS)

    def show_month(self, year: int, month: int) -> None:
        self._check_month(year, month)
        self.state.year = year
        self.state.month = month
        self.request(MONTH_REGIONS)

    def shift_day(self, delta: int) -> None:
        current = date.fromisoformat(self.state.selected_day)
        try:
            target = current + timedelta(days=delta)
        except (OverflowError, ValueError) as exc:
            raise ValidationError(f"表示できない日付です: {delta}日移動", field="date") from exc
        self.state.selected_day = aggregator.day_key(target)
        self.request(DAY_REGIONS)

    @staticmethod
    def _check_month(year: int, month: int) -> None:
        """前後の月にはみ出すグリッドのマスまで日付として表せるか確認する"""
        try:
            first = date(year, month, 1)
            first - timedelta(days=7)
            first + timedelta(days=aggregator.GRID_CELLS)
        except (OverflowError, ValueError) as exc:
            raise ValidationError(f"表示できない年月です: {year}-{month}", field="month") from exc

    def select_day(self, day: Any) -> None:
        self.state.selected_day = normalize_date(day)
        self.request(DAY_REGIONS)

    def open_day(self, day: Any) -> None:
        self.state.modal_date = normalize_date(day)
        self.request({Region.DAY_MODAL})

    def close_modal(self) -> None:
        self.state.modal_date = None
        self.request({Region.DAY_MODAL})

    # ---- 編集モード ----

    def begin_edit(self, item_id: int) -> Task:
        item = self.store.get(item_id)
        if not isinstance(item, Task):
            raise WrongKindError(item_id, expected="task")
        self.state.editing_id = item_id
        self.request({Region.DAILY_PANEL})
        return item

    def cancel_edit(self) -> None:
        if self.state.editing_id is None:
            return
        self.state.editing_id = None
        self.request({Region.DAILY_PANEL})

    def refresh_all(self) -> None:
        self.request(set(Region))

    # ---- 描画 ----

    def request(self, regions: Iterable[Region]) -> None:
        """描画を要求する。描画中の要求は現在のパスの後に実行される。"""
        self._pending |= set(regions)
        if self._rendering:
            return
        self._rendering = True
        try:
            while self._pending:
                batch_regions = self._pending
                self._pending = set()
                self._render(batch_regions)
        finally:
            self._rendering = False

    def _on_mutation(self, scope: MutationScope) -> None:
        regions = set(MUTATION_REGIONS)
        editing = self.state.editing_id
        if editing is not None and not any(task.id == editing for task in self.store.tasks):
            self.state.editing_id = None
        if self.state.modal_date is not None and scope.touches(self.state.modal_date):
            regions.add(Region.DAY_MODAL)
        self.request(regions)

    def _render(self, regions: Set[Region]) -> None:
        snapshot = self.store.snapshot()
        today = self._today()
        ordered = [region for region in _RENDER_ORDER if region in regions]
        outputs: Dict[Region, Any] = {}

        for region in ordered:
            self.phases[region] = "rendering"
        try:
            for region in ordered:
                outputs[region] = self._build(region, snapshot, today)
        finally:
            for region in ordered:
                self.phases[region] = "idle"

        celebrations = self._celebrations(outputs)
        self.latest.update(outputs)
        batch = RenderBatch(regions=outputs, celebrations=tuple(celebrations))
        for sink in list(self._sinks):
            try:
                sink(batch)
            except Exception:
                logger.exception("View sink failed")

    def _build(self, region: Region, snapshot: Snapshot, today: date) -> Any:
        state = self.state
        if region is Region.MONTH_GRID:
            return MonthGridView(
                year=state.year,
                month=state.month,
                title=aggregator.format_month_label(state.year, state.month),
                cells=tuple(aggregator.calendar_grid(snapshot, state.year, state.month, today)),
                empty=not snapshot.notes and not snapshot.tasks,
                overview=aggregator.overview(snapshot),
            )
        if region is Region.MONTH_PROGRESS:
            stats = aggregator.month_stats(snapshot, state.year, state.month, today)
            return aggregator.month_progress(stats)
        if region is Region.DAILY_PANEL:
            items = aggregator.items_on_day(snapshot, state.selected_day)
            return DailyPanelView(
                date=state.selected_day,
                label=aggregator.format_day_label(state.selected_day, today),
                items=tuple(self._item_view(item) for item in items),
                editing_id=state.editing_id,
            )
        if region is Region.DAILY_PROGRESS:
            return aggregator.day_progress(snapshot, state.selected_day)
        if state.modal_date is None:
            return DayModalView(open=False)
        items = aggregator.day_items(snapshot, state.modal_date)
        return DayModalView(
            open=True,
            date=state.modal_date,
            label=aggregator.format_day_label(state.modal_date, today),
            items=tuple(self._item_view(item) for item in items),
        )

    def _item_view(self, item: Item) -> ItemView:
        if isinstance(item, Task):
            return ItemView(
                id=item.id,
                kind=item.kind,
                text=item.text,
                created_at=item.created_at,
                priority=item.priority.value,
                completed=item.completed,
                editing=item.id == self.state.editing_id,
            )
        return ItemView(id=item.id, kind=item.kind, text=item.text, created_at=item.created_at)

    def _celebrations(self, outputs: Dict[Region, Any]) -> List[Celebration]:
        """100%到達時に一度だけ発火し、100%を下回ったら再び発火可能にする"""
        fired = []
        candidates = []
        if Region.DAILY_PROGRESS in outputs:
            candidates.append(("day", self.state.selected_day, outputs[Region.DAILY_PROGRESS]))
        if Region.MONTH_PROGRESS in outputs:
            month_key = f"{self.state.year:04d}-{self.state.month:02d}"
            candidates.append(("month", month_key, outputs[Region.MONTH_PROGRESS]))

        for scope, key, progress in candidates:
            token = f"{scope}:{key}"
            if not isinstance(progress, ProgressView) or progress.percent < 100:
                self.celebrated.discard(token)
                continue
            if token in self.celebrated:
                continue
            self.celebrated.add(token)
            fired.append(Celebration(scope=scope, key=key))
            if self.status is not None:
                text = "今日のタスクをすべて完了しました！" if scope == "day" else "今月のタスクをすべて完了しました！"
                self.status.success(text)
        return fired
