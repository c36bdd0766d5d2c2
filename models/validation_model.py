#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Validation Service for ACL upload entries

Responsibilities:
- Recognise the '!' negation marker and the '/prefix' CIDR suffix
- Validate the address as an IPv4 or IPv6 literal (no DNS, no reachability)
- Validate the prefix length against the address family
- Report invalid lines with a human-readable reason, keeping the original text
"""

from __future__ import annotations

import ipaddress
import re
from typing import Iterable, List, Optional, Tuple

from models.schemas import (
    MALFORMED_ADDRESS,
    EntrySpec,
    InvalidEntry,
    ValidEntry,
    ValidationOutcome,
    invalid_prefix_reason,
)
from utils.logger import get_logger, log_metric, log_stage

_PREFIX_RE = re.compile(r"[0-9]+")

IPV4_MAX_PREFIX = 32
IPV6_MAX_PREFIX = 128


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------
def _split_negation(line: str) -> Tuple[bool, str]:
    if line.startswith("!"):
        return True, line[1:]
    return False, line


def _split_prefix(working: str) -> Tuple[str, Optional[str]]:
    if "/" not in working:
        return working, None
    address, _, prefix_text = working.partition("/")
    return address, prefix_text


def _is_ip_literal(address: str) -> bool:
    try:
        ipaddress.ip_address(address)
        return True
    except ValueError:
        return False


def _max_prefix(address: str) -> int:
    return IPV6_MAX_PREFIX if ":" in address else IPV4_MAX_PREFIX


def _parse_prefix(prefix_text: str, max_prefix: int) -> Optional[int]:
    if not _PREFIX_RE.fullmatch(prefix_text):
        return None
    value = int(prefix_text)
    if value > max_prefix:
        return None
    return value


def validate_line(line: str) -> ValidationOutcome:
    """Classify one candidate line as a valid ACL entry or an invalid one."""
    negated, working = _split_negation(line)
    address, prefix_text = _split_prefix(working)

    if not _is_ip_literal(address):
        return InvalidEntry(original=line, reason=MALFORMED_ADDRESS)

    prefix: Optional[int] = None
    if prefix_text is not None:
        max_prefix = _max_prefix(address)
        prefix = _parse_prefix(prefix_text, max_prefix)
        if prefix is None:
            return InvalidEntry(original=line, reason=invalid_prefix_reason(max_prefix))

    return ValidEntry(
        entry=EntrySpec(original=line, negated=negated, address=address, prefix=prefix)
    )


# ----------------------------------------------------------------------
# Validator Service
# ----------------------------------------------------------------------
class EntryValidator:
    def __init__(self, log_level: str = "INFO"):
        self.logger = get_logger("validator", log_level, "validator.log")

    def validate_entry(self, line: str) -> ValidationOutcome:
        outcome = validate_line(line)
        if not outcome.valid:
            self.logger.debug("Rejected entry %r: %s", line, outcome.reason)
        return outcome

    def validate_entries(self, lines: Iterable[str]) -> List[ValidationOutcome]:
        with log_stage(self.logger, "validate"):
            results = [self.validate_entry(line) for line in lines]
        valid_count = sum(1 for r in results if r.valid)
        invalid_count = len(results) - valid_count
        self.logger.info("Finished validation (%d valid, %d invalid)", valid_count, invalid_count)
        log_metric(self.logger, "entries_valid_total", valid_count, stage="validate")
        log_metric(self.logger, "entries_invalid_total", invalid_count, stage="validate")
        return results
