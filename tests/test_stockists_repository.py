import json
import logging
from pathlib import Path

import pytest

from stockist_map.data import stockists_repository
from stockist_map.data.stockists_repository import load_stockist_rows


class FailingSupabase:
    def table(self, name):
        raise ConnectionError("database unreachable")


@pytest.fixture
def feed_file(tmp_path: Path) -> Path:
    feed = tmp_path / "stockists.json"
    feed.write_text(
        json.dumps(
            [
                {"id": 1, "name": "Located", "latitude": -33.87, "longitude": 151.21},
                {"id": 2, "name": "Pending", "latitude": None, "longitude": None},
                {"id": 3, "name": "Hidden", "latitude": -33.88, "longitude": 151.2, "is_active": False},
            ]
        ),
        encoding="utf-8",
    )
    return feed


def test_file_feed_keeps_active_located_rows(feed_file: Path):
    assert [row["id"] for row in load_stockist_rows(feed_file)] == [1]


def test_file_feed_must_be_a_list(tmp_path: Path):
    feed = tmp_path / "stockists.json"
    feed.write_text(json.dumps({"id": 1}), encoding="utf-8")

    with pytest.raises(ValueError):
        load_stockist_rows(feed)


def test_database_failure_falls_back_to_file_and_logs_on_module_logger(
    feed_file: Path, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
):
    monkeypatch.setattr(stockists_repository, "get_supabase_client", lambda: FailingSupabase())
    monkeypatch.setattr(stockists_repository.settings, "stockists_file", feed_file)

    with caplog.at_level(logging.WARNING, logger="stockist_map.data.stockists_repository"):
        rows = load_stockist_rows()

    assert [row["id"] for row in rows] == [1]
    records = [record for record in caplog.records if "falling back to file" in record.getMessage()]
    assert records and records[0].name == "stockist_map.data.stockists_repository"
