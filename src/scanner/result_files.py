"""Local JSON and plain-text scan reports."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Sequence

from src.scanner.browser.models import ScrapeResult, Target

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 1000


def _keywords_for(url: str, targets: Sequence[Target]) -> list[str]:
    for target in targets:
        if target.url == url:
            return list(target.keywords)
    return []


def _render_text(results: Sequence[ScrapeResult], when: datetime, targets: Sequence[Target]) -> str:
    lines = [
        "WEB SCANNER RESULTS",
        "===================",
        "",
        f"Scan Date: {when:%Y-%m-%d %H:%M:%S %Z}".rstrip(),
        f"Sites Processed: {len(results)}",
        "",
    ]
    for index, result in enumerate(results, start=1):
        keywords = _keywords_for(result.url, targets)
        content = result.content[:PREVIEW_CHARS]
        if len(result.content) > PREVIEW_CHARS:
            content += "\n... (truncated, full content in JSON file)"
        lines += [
            f"{index}. {result.name}",
            "=" * (len(result.name) + 3),
            f"URL: {result.url}",
            f"Title: {result.title}",
            f"Scraped: {result.scraped_at}",
            f"Content Length: {len(result.content)} characters",
            f"Keywords: {', '.join(keywords) or 'None'}",
            "",
            "CONTENT:",
            "---------",
            content,
            "",
            "=" * 80,
            "",
        ]
    return "\n".join(lines)


def save_results_to_files(
    results: Sequence[ScrapeResult],
    timestamp: str,
    targets: Sequence[Target],
    base_dir: str | Path = "/tmp",
) -> tuple[str, str]:
    """Write a detailed JSON file and a readable TXT file for one scan.

    Write errors are logged, not raised. Returns the two file names.
    """
    when = datetime.fromisoformat(timestamp)
    stem = f"scan-results-{when:%Y-%m-%d}-{when:%H-%M-%S}"
    json_name = f"{stem}.json"
    txt_name = f"{stem}.txt"
    base = Path(base_dir)

    data = {
        "timestamp": timestamp,
        "sitesProcessed": len(results),
        "results": [
            {
                "name": r.name,
                "url": r.url,
                "title": r.title,
                "content": r.content,
                "contentLength": len(r.content),
                "scrapedAt": r.scraped_at,
                "keywords": _keywords_for(r.url, targets),
            }
            for r in results
        ],
    }

    try:
        (base / json_name).write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.info("saved detailed results", extra={"file": json_name})
    except OSError:
        logger.warning("error saving JSON results file", extra={"file": json_name}, exc_info=True)

    try:
        (base / txt_name).write_text(_render_text(results, when, targets), encoding="utf-8")
        logger.info("saved readable results", extra={"file": txt_name})
    except OSError:
        logger.warning("error saving TXT results file", extra={"file": txt_name}, exc_info=True)

    return json_name, txt_name
