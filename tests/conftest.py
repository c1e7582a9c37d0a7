"""Shared fixtures: stockist factories and an in-memory stand-in for the Supabase client."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest

from stockist_map.models.domain import Coordinate, Stockist
from stockist_map.services.registry import StockistRegistry


def make_stockist(
    sid: str,
    name: str,
    lat: float,
    lng: float,
    *,
    postcode: str = "2000",
    state: str = "NSW",
    city: str = "SYDNEY",
    address1: str | None = "1 GEORGE ST",
) -> Stockist:
    return Stockist(
        stockist_id=sid,
        name=name,
        address1=address1,
        address2=None,
        city=city,
        state=state,
        postcode=postcode,
        country="australia",
        latitude=lat,
        longitude=lng,
    )


class FakeGeocoder:
    """Returns canned coordinates per query and records what was asked."""

    def __init__(self, results: dict[str, Coordinate | None] | None = None, *, error: Exception | None = None) -> None:
        self.results = results or {}
        self.error = error
        self.queries: list[str] = []

    def postcode_query(self, postcode: str) -> str:
        return f"Australia {postcode}"

    @staticmethod
    def address_query(parts) -> str:
        return ", ".join(str(part) for part in parts if part)

    async def geocode(self, query: str) -> Coordinate | None:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return self.results.get(query)


class FakeQuery:
    """Chainable query builder mimicking the postgrest calls the code makes."""

    def __init__(self, table: "FakeTable", action: str, payload: Any = None) -> None:
        self.table = table
        self.action = action
        self.payload = payload
        self.filters: list[tuple[str, str, Any]] = []
        self._limit: int | None = None
        self._single = False

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(("eq", column, value))
        return self

    def is_(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(("is", column, value))
        return self

    def limit(self, count: int) -> "FakeQuery":
        self._limit = count
        return self

    def maybe_single(self) -> "FakeQuery":
        self._single = True
        return self

    def _matches(self, row: dict) -> bool:
        for op, column, value in self.filters:
            if op == "eq" and row.get(column) != value:
                return False
            if op == "is" and value == "null" and row.get(column) is not None:
                return False
        return True

    def execute(self) -> SimpleNamespace:
        self.table.calls.append(self)
        rows = self.table.rows
        if self.action == "select":
            data = [dict(row) for row in rows if self._matches(row)]
            if self._limit is not None:
                data = data[: self._limit]
            if self._single:
                return SimpleNamespace(data=data[0]) if data else None
            return SimpleNamespace(data=data, count=len(data))
        if self.action == "upsert":
            for existing in rows:
                if existing.get("id") == self.payload["id"]:
                    existing.update(self.payload)
                    break
            else:
                rows.append(dict(self.payload))
            return SimpleNamespace(data=[self.payload])
        if self.action == "update":
            for row in rows:
                if self._matches(row):
                    row.update(self.payload)
            return SimpleNamespace(data=[])
        raise AssertionError(f"unexpected action {self.action}")


class FakeTable:
    def __init__(self, rows: list[dict]) -> None:
        self.rows = rows
        self.calls: list[FakeQuery] = []

    def select(self, columns: str, **kwargs: Any) -> FakeQuery:
        return FakeQuery(self, "select", columns)

    def upsert(self, payload: dict) -> FakeQuery:
        return FakeQuery(self, "upsert", payload)

    def update(self, payload: dict) -> FakeQuery:
        return FakeQuery(self, "update", payload)


class FakeSupabase:
    def __init__(self, rows: list[dict] | None = None) -> None:
        self.stockists = FakeTable(rows if rows is not None else [])

    def table(self, name: str) -> FakeTable:
        assert name == "stockists"
        return self.stockists


@pytest.fixture
def acme_beta_registry() -> StockistRegistry:
    return StockistRegistry(
        [
            make_stockist("1", "Acme", -33.87, 151.21, postcode="2000", state="NSW"),
            make_stockist("2", "Beta", -37.81, 144.96, postcode="3000", state="VIC", city="MELBOURNE"),
        ]
    )


@pytest.fixture
def sydney_registry() -> StockistRegistry:
    return StockistRegistry(
        [
            make_stockist("1", "Acme Wholefoods", -33.8688, 151.2093, postcode="2000", state="NSW"),
            make_stockist("2", "Bondi Health", -33.8908, 151.2743, postcode="2026", state="NSW", city="BONDI BEACH"),
            make_stockist("3", "Acme Fitzroy", -37.8003, 144.9785, postcode="3065", state="VIC", city="FITZROY"),
            make_stockist("4", "Newtown Grocer", -33.8981, 151.1783, postcode="2042", state="NSW", city="NEWTOWN"),
            make_stockist("5", "Brisbane Pantry", -27.4777, 153.0234, postcode="4101", state="QLD", city="SOUTH BRISBANE"),
        ]
    )
