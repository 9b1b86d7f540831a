"""
Result persistence: one CSV row per (URL, expected event), appended as each
session finishes, plus a JSON document with every outcome at the end.
"""

import asyncio
import csv
import json
import os
from typing import List

from config import CSV_HEADER, DEFAULT_CSV_PATH, DEFAULT_JSON_PATH
from models import SessionOutcome
from run_logger import unified_logger

CSV_DELIMITER = ";"
ERROR_MARKER = "ERROR"


def _compact_json(value) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(',', ':'))


def first_line(message) -> str:
    """Playwright errors carry a multi-line call log; keep CSV rows on one line."""
    lines = (message or "").strip().splitlines()
    return lines[0] if lines else ""


def result_rows(outcome: SessionOutcome) -> List[List[str]]:
    """Flatten an outcome into CSV rows."""
    if not outcome.ok:
        return [[outcome.url, "", "", ERROR_MARKER, "", first_line(outcome.error)]]

    rows = []
    for event_result in outcome.result.event_results:
        rows.append([
            outcome.url,
            event_result.name,
            event_result.type,
            "true" if event_result.is_setup_correctly else "false",
            _compact_json(event_result.expected),
            _compact_json(event_result.actual.to_dict()) if event_result.actual is not None else "",
        ])
    return rows


class ResultReporter:
    def __init__(self, csv_path: str = DEFAULT_CSV_PATH, json_path: str = DEFAULT_JSON_PATH,
                 clear_csv: bool = False, logger=unified_logger):
        self.csv_path = csv_path
        self.json_path = json_path
        self.clear_csv = clear_csv
        self.logger = logger
        self.outcomes: List[SessionOutcome] = []
        self._lock = asyncio.Lock()

    def prepare(self) -> None:
        """Recreate the CSV with its header when asked to, or when it does not exist yet."""
        if self.clear_csv or not os.path.exists(self.csv_path):
            with open(self.csv_path, 'w', encoding='utf-8', newline='') as f:
                csv.writer(f, delimiter=CSV_DELIMITER).writerow(CSV_HEADER)
            self.logger.log_debug(f"CSV initialised: {self.csv_path}")

    async def append(self, outcome: SessionOutcome) -> None:
        """Persist one outcome immediately and keep it for the aggregate."""
        async with self._lock:
            self.outcomes.append(outcome)
            with open(self.csv_path, 'a', encoding='utf-8', newline='') as f:
                writer = csv.writer(f, delimiter=CSV_DELIMITER)
                writer.writerows(result_rows(outcome))
                f.flush()

    def aggregate(self) -> List[dict]:
        return [outcome.to_dict() for outcome in self.outcomes]

    def write_aggregate(self) -> None:
        with open(self.json_path, 'w', encoding='utf-8') as f:
            json.dump(self.aggregate(), f, indent=2, ensure_ascii=False)
        self.logger.log_info(f"💾 Saved {len(self.outcomes)} result(s) to {self.json_path}")
