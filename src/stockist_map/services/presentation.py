"""Marker visibility and sidebar list state derived from a filter result."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal, Optional

from ..config import settings
from ..models.domain import Coordinate, FilterMode, FilterResult, Stockist
from .geospatial import escape_for_display, title_case
from .registry import StockistRegistry

Layout = Literal["narrow", "wide"]


def classify_layout(width_px: int, breakpoint_px: int | None = None) -> Layout:
    breakpoint_px = settings.narrow_breakpoint_px if breakpoint_px is None else breakpoint_px
    return "narrow" if width_px <= breakpoint_px else "wide"


@dataclass(frozen=True, slots=True)
class ListEntry:
    """One sidebar item, already escaped for HTML display."""

    stockist_id: str
    name: str
    address_line: str
    locality_line: str
    country_line: str

    @classmethod
    def for_stockist(cls, stockist: Stockist) -> "ListEntry":
        return cls(
            stockist_id=stockist.stockist_id,
            name=escape_for_display(stockist.name),
            address_line=escape_for_display(title_case(stockist.address1)),
            locality_line=(
                f"{escape_for_display(title_case(stockist.city))}, "
                f"{escape_for_display(stockist.postcode)} {escape_for_display(stockist.state)}"
            ).strip(),
            country_line=escape_for_display(title_case(stockist.country)),
        )


@dataclass(frozen=True, slots=True)
class ShowAllAffordance:
    total: int

    @property
    def label(self) -> str:
        return f"Show all ({self.total})"


@dataclass(frozen=True, slots=True)
class PresentationState:
    layout: Layout
    mode: FilterMode
    marker_visibility: dict[str, bool]
    entries: tuple[ListEntry, ...]
    total: int
    expanded: bool = False
    show_all: Optional[ShowAllAffordance] = None
    user_location: Optional[Coordinate] = None
    notice: Optional[str] = None

    @property
    def visible_marker_ids(self) -> tuple[str, ...]:
        return tuple(stockist_id for stockist_id, visible in self.marker_visibility.items() if visible)


@dataclass
class _Rendered:
    registry: StockistRegistry
    result: FilterResult
    layout: Layout
    user_location: Optional[Coordinate] = None


class PresentationSync:
    """Keeps markers and the sidebar list in step with the latest visible set.

    The list is rebuilt from scratch on every render; on narrow layouts it is
    cut to ``max_items`` with a "show all" affordance until expanded.
    """

    def __init__(self, max_items: int | None = None, breakpoint_px: int | None = None) -> None:
        self.max_items = settings.narrow_max_items if max_items is None else max_items
        self.breakpoint_px = settings.narrow_breakpoint_px if breakpoint_px is None else breakpoint_px
        self.state: Optional[PresentationState] = None
        self._last: Optional[_Rendered] = None

    def classify(self, width_px: int) -> Layout:
        return classify_layout(width_px, self.breakpoint_px)

    def render(
        self,
        registry: StockistRegistry,
        result: FilterResult,
        layout: Layout,
        *,
        expanded: bool = False,
        user_location: Coordinate | None = None,
    ) -> PresentationState:
        visible_ids = set(result.visible_ids)
        marker_visibility = {stockist.stockist_id: stockist.stockist_id in visible_ids for stockist in registry}

        total = len(result.visible)
        truncate = layout == "narrow" and total > self.max_items and not expanded
        shown = result.visible[: self.max_items] if truncate else result.visible

        self.state = PresentationState(
            layout=layout,
            mode=result.mode,
            marker_visibility=marker_visibility,
            entries=tuple(ListEntry.for_stockist(stockist) for stockist in shown),
            total=total,
            expanded=expanded,
            show_all=ShowAllAffordance(total) if truncate else None,
            user_location=user_location,
        )
        self._last = _Rendered(registry=registry, result=result, layout=layout, user_location=user_location)
        return self.state

    def expand(self) -> Optional[PresentationState]:
        """Render the full visible set and drop the affordance."""
        if self._last is None:
            return None
        return self.render(
            self._last.registry,
            self._last.result,
            self._last.layout,
            expanded=True,
            user_location=self._last.user_location,
        )

    def notify(self, message: str) -> Optional[PresentationState]:
        """Attach a user-facing notice without touching markers or the list."""
        if self.state is None:
            return None
        self.state = replace(self.state, notice=message)
        return self.state
