from conftest import make_stockist
from stockist_map.models.domain import FilterResult
from stockist_map.services.presentation import ListEntry, PresentationSync, classify_layout
from stockist_map.services.registry import StockistRegistry


def _registry(count: int) -> StockistRegistry:
    return StockistRegistry(
        make_stockist(str(index), f"Stockist {index}", -33.0 - index / 100, 151.0) for index in range(1, count + 1)
    )


def _result(registry: StockistRegistry, ids=None) -> FilterResult:
    visible = tuple(s for s in registry if ids is None or s.stockist_id in ids)
    return FilterResult(visible=visible, mode="direct")


def test_classify_layout_uses_inclusive_breakpoint():
    assert classify_layout(768, 768) == "narrow"
    assert classify_layout(769, 768) == "wide"


def test_narrow_layout_truncates_with_show_all():
    registry = _registry(15)
    sync = PresentationSync(max_items=10, breakpoint_px=768)

    state = sync.render(registry, _result(registry), "narrow")

    assert len(state.entries) == 10
    assert [entry.stockist_id for entry in state.entries] == [str(i) for i in range(1, 11)]
    assert state.total == 15
    assert state.show_all.label == "Show all (15)"


def test_show_all_expands_to_full_list():
    registry = _registry(15)
    sync = PresentationSync(max_items=10, breakpoint_px=768)
    sync.render(registry, _result(registry), "narrow")

    state = sync.expand()

    assert len(state.entries) == 15
    assert state.expanded
    assert state.show_all is None


def test_wide_layout_is_never_truncated():
    registry = _registry(15)

    state = PresentationSync(max_items=10).render(registry, _result(registry), "wide")

    assert len(state.entries) == 15
    assert state.show_all is None


def test_narrow_layout_at_the_limit_has_no_affordance():
    registry = _registry(10)

    state = PresentationSync(max_items=10).render(registry, _result(registry), "narrow")

    assert len(state.entries) == 10
    assert state.show_all is None


def test_marker_visibility_matches_visible_set():
    registry = _registry(4)

    state = PresentationSync().render(registry, _result(registry, {"2", "4"}), "wide")

    assert state.marker_visibility == {"1": False, "2": True, "3": False, "4": True}
    assert state.visible_marker_ids == ("2", "4")
    assert [entry.stockist_id for entry in state.entries] == ["2", "4"]


def test_empty_result_hides_every_marker():
    registry = _registry(3)

    state = PresentationSync().render(registry, _result(registry, set()), "wide")

    assert not any(state.marker_visibility.values())
    assert state.entries == ()


def test_list_entry_formats_and_escapes():
    stockist = make_stockist(
        "9", "Tom & Jerry's <Deli>", -33.89, 151.27, postcode="2026", city="BONDI BEACH", address1="180 CAMPBELL PDE"
    )

    entry = ListEntry.for_stockist(stockist)

    assert entry.name == "Tom &amp; Jerry&#39;s &lt;Deli&gt;"
    assert entry.address_line == "180 Campbell Pde"
    assert entry.locality_line == "Bondi Beach, 2026 NSW"
    assert entry.country_line == "Australia"


def test_notify_keeps_markers_and_list():
    registry = _registry(3)
    sync = PresentationSync()
    before = sync.render(registry, _result(registry, {"1"}), "wide")

    after = sync.notify("Could not access your location.")

    assert after.notice == "Could not access your location."
    assert after.marker_visibility == before.marker_visibility
    assert after.entries == before.entries


def test_notify_before_render_is_a_no_op():
    assert PresentationSync().notify("hello") is None
