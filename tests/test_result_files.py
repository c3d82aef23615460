"""Local scan report file tests."""

import json

from src.scanner.browser import ScrapeResult, Target
from src.scanner.result_files import PREVIEW_CHARS, save_results_to_files

TIMESTAMP = "2026-03-04T05:06:07+00:00"


def _result(content: str = "short content") -> ScrapeResult:
    return ScrapeResult(
        url="https://example.com",
        name="Example",
        title="Example Domain",
        content=content,
        scraped_at=TIMESTAMP,
    )


def test_files_named_after_timestamp(tmp_path):
    json_name, txt_name = save_results_to_files([_result()], TIMESTAMP, [], tmp_path)
    assert json_name == "scan-results-2026-03-04-05-06-07.json"
    assert txt_name == "scan-results-2026-03-04-05-06-07.txt"
    assert (tmp_path / json_name).exists()
    assert (tmp_path / txt_name).exists()


def test_json_report_contents(tmp_path):
    targets = [Target(url="https://example.com", name="Example", keywords=("dólar",))]
    json_name, _ = save_results_to_files([_result()], TIMESTAMP, targets, tmp_path)

    data = json.loads((tmp_path / json_name).read_text(encoding="utf-8"))
    assert data["timestamp"] == TIMESTAMP
    assert data["sitesProcessed"] == 1
    entry = data["results"][0]
    assert entry["contentLength"] == len("short content")
    assert entry["scrapedAt"] == TIMESTAMP
    assert entry["keywords"] == ["dólar"]


def test_text_report_truncates_long_content(tmp_path):
    content = "x" * (PREVIEW_CHARS + 50)
    _, txt_name = save_results_to_files([_result(content)], TIMESTAMP, [], tmp_path)

    text = (tmp_path / txt_name).read_text(encoding="utf-8")
    assert "x" * PREVIEW_CHARS in text
    assert "x" * (PREVIEW_CHARS + 1) not in text
    assert "truncated" in text
    assert "Keywords: None" in text


def test_write_errors_are_logged_not_raised(tmp_path):
    missing = tmp_path / "does-not-exist"
    json_name, txt_name = save_results_to_files([_result()], TIMESTAMP, [], missing)
    assert json_name.endswith(".json")
    assert not (missing / json_name).exists()
