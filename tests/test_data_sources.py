import asyncio
import io
import json
import logging
import zipfile

import httpx

from taicai.config import load_settings
from taicai.data_sources import (
    SourceConfig,
    fetch_all_archives,
    fetch_archive,
    fetch_baseline,
    fetch_live,
    parse_archive_zip,
    parse_csv_rows,
)

BASE = "https://data.test"

CSV_TEXT = (
    "遊戲名稱,期別,開獎日期,銷售總額,獎號1,獎號2,獎號3,獎號4,獎號5,獎號6,特別號\n"
    "大樂透,113000001,113/01/02,100,01,13,22,31,40,49,07\n"
    "今彩539,113000002,113/01/03,50,3,8,19,27,33,,\n"
)


def _zip(members):
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, text in members.items():
            zf.writestr(name, text.encode("utf-8"))
    return buf.getvalue()


def _cfg(**kw):
    kw.setdefault("data_url", f"{BASE}/lottery-data.json")
    kw.setdefault("archive_urls", [])
    return SourceConfig(**kw)


def _run(handler, coro_fn):
    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await coro_fn(client)
    return asyncio.run(go())


def test_parse_csv_rows():
    batch = parse_csv_rows(CSV_TEXT)
    assert batch["大樂透"][0] == {
        "period": "113000001",
        "date": "113/01/02",
        "numbers": ["01", "13", "22", "31", "40", "49", "07"],
    }
    assert batch["今彩539"][0]["numbers"] == ["3", "8", "19", "27", "33"]


def test_parse_csv_single_cell_numbers():
    batch = parse_csv_rows("遊戲名稱,期別,開獎日期,獎號1\n3星彩,1,2024-01-02,0 4 9\n")
    assert batch["3星彩"][0]["numbers"] == ["0", "4", "9"]


def test_parse_archive_zip_reads_json_and_csv():
    content = _zip({
        "b.csv": CSV_TEXT,
        "a.json": json.dumps({"games": {"威力彩": [{"period": "1", "numbers": [1, 2, 3, 4, 5, 6, 2]}]}}),
        "readme.txt": "ignored",
    })
    batch = parse_archive_zip(content)
    assert set(batch) == {"威力彩", "大樂透", "今彩539"}


def test_fetch_baseline():
    payload = {
        "games": {"今彩539": [{"period": "1", "numbers": [1, 2, 3, 4, 5]}], "bad": "x"},
        "jackpots": {"大樂透": 1000},
        "last_updated": "2024-01-02",
    }

    def handler(request):
        assert request.url.path == "/lottery-data.json"
        assert "t" in request.url.params
        return httpx.Response(200, json=payload)

    feed = _run(handler, lambda c: fetch_baseline(c, _cfg()))
    assert list(feed.games) == ["今彩539"]
    assert feed.jackpots == {"大樂透": 1000}
    assert feed.last_updated == "2024-01-02"


def test_baseline_failure_is_empty():
    feed = _run(lambda r: httpx.Response(500), lambda c: fetch_baseline(c, _cfg()))
    assert feed.games == {} and feed.jackpots == {}

    feed = _run(lambda r: httpx.Response(200, text="<html>"), lambda c: fetch_baseline(c, _cfg()))
    assert feed.games == {}


def test_archives_keep_url_order_and_absorb_failures():
    bodies = {
        "/2022.zip": _zip({"x.json": json.dumps({"今彩539": [{"period": "22"}]})}),
        "/2024.zip": _zip({"x.json": json.dumps({"今彩539": [{"period": "24"}]})}),
    }

    def handler(request):
        body = bodies.get(request.url.path)
        if body is None:
            return httpx.Response(404)
        return httpx.Response(200, content=body)

    urls = [f"{BASE}/2022.zip", f"{BASE}/2023.zip", f"{BASE}/2024.zip"]
    results = _run(handler, lambda c: fetch_all_archives(c, urls))
    assert results[0]["今彩539"][0]["period"] == "22"
    assert results[1] is None
    assert results[2]["今彩539"][0]["period"] == "24"


def test_archive_that_is_not_a_zip():
    result = _run(lambda r: httpx.Response(200, content=b"nope"), lambda c: fetch_archive(c, f"{BASE}/x.zip"))
    assert result is None


def test_fetch_live():
    cfg = _cfg(live_url=f"{BASE}/live")
    batch = _run(lambda r: httpx.Response(200, json={"大樂透": [{"period": "5"}]}), lambda c: fetch_live(c, cfg))
    assert batch == {"大樂透": [{"period": "5"}]}

    assert _run(lambda r: httpx.Response(503), lambda c: fetch_live(c, cfg)) == {}


def test_no_live_url_skips_request():
    def handler(request):
        raise AssertionError("should not be called")

    assert _run(handler, lambda c: fetch_live(c, _cfg())) == {}


def test_source_config_from_settings(monkeypatch):
    monkeypatch.setenv("LOTTERY_ARCHIVE_URL", "https://cdn.test/{year}.zip")
    monkeypatch.setenv("ARCHIVE_START_YEAR", "2022")
    monkeypatch.setenv("FETCH_TIMEOUT", "12")
    cfg = SourceConfig.from_settings(load_settings(), current_year=2024)
    assert cfg.archive_urls == [
        "https://cdn.test/2022.zip",
        "https://cdn.test/2023.zip",
        "https://cdn.test/2024.zip",
    ]
    assert cfg.timeout == 12.0


def test_unavailable_source_is_logged_with_reason(caplog):
    caplog.set_level(logging.WARNING, logger="taicai.data_sources")
    feed = _run(lambda r: httpx.Response(200, json=[1, 2]), lambda c: fetch_baseline(c, _cfg()))
    assert feed.games == {}
    assert "baseline https://data.test/lottery-data.json unavailable" in caplog.text
    assert "Unexpected baseline response" in caplog.text

    caplog.clear()
    _run(lambda r: httpx.Response(200, content=b"nope"), lambda c: fetch_archive(c, f"{BASE}/2023.zip"))
    assert "archive https://data.test/2023.zip unavailable" in caplog.text
    assert "unreadable bundle" in caplog.text
