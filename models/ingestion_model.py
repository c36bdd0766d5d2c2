#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Entry parser for uploaded ACL files.

Responsibilities:
- Split uploaded text into candidate lines (trim whitespace, drop BOMs)
- Skip blank lines and '#' comment lines
- Emit metrics detailing how many lines were kept/skipped
"""

from __future__ import annotations

from typing import Iterator, List

from utils.logger import get_logger, log_metric


def _normalize_line(value: str) -> str:
    """Trim surrounding whitespace and strip UTF-8 BOM if present."""
    normalized = value.strip()
    if normalized.startswith("\ufeff"):
        normalized = normalized.lstrip("\ufeff").strip()
    return normalized


def _is_skipped(line: str) -> bool:
    return not line or line.startswith("#")


def iter_candidate_lines(text: str) -> Iterator[str]:
    """
    Yield the candidate entries of an uploaded file, one per line.

    Malformed content is passed through; the validator decides what it is.
    """
    for raw in text.split("\n"):
        line = _normalize_line(raw)
        if _is_skipped(line):
            continue
        yield line


class EntryParser:
    """
    Service wrapper around `iter_candidate_lines` that logs what was kept.
    """

    def __init__(self, log_level: str = "INFO") -> None:
        self.logger = get_logger("ingestion.parser", log_level, "ingestion.log")

    def parse(self, text: str) -> List[str]:
        total = text.count("\n") + 1 if text else 0
        lines = list(iter_candidate_lines(text))
        skipped = total - len(lines)
        self.logger.info("Parsing complete | candidates=%s skipped=%s", len(lines), skipped)
        log_metric(self.logger, "entries_parsed_total", len(lines), stage="parse")
        log_metric(self.logger, "entries_parsed_skipped", skipped, stage="parse")
        return lines
