#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Batch Submitter

- Splits validation outcomes into fixed-size batches
- Submits the valid entries of a batch concurrently (asyncio.gather)
- Pauses between batches to stay under the Fastly rate limit
- Records one SubmissionResult per entry; no entry failure escapes
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Sequence

import aiohttp

from models.schemas import InvalidEntry, SubmissionResult, ValidationOutcome
from utils.logger import get_logger, log_metric, log_stage

DEFAULT_BATCH_SIZE = 50
DEFAULT_PAUSE_SECONDS = 1.0


def iter_batches(items: Sequence[ValidationOutcome], size: int):
    for start in range(0, len(items), size):
        yield items[start:start + size]


class BatchSubmitter:
    def __init__(
        self,
        client,
        comment: str,
        batch_size: int = DEFAULT_BATCH_SIZE,
        pause_seconds: float = DEFAULT_PAUSE_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        log_level: str = "INFO",
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.client = client
        self.comment = comment
        self.batch_size = batch_size
        self.pause_seconds = pause_seconds
        self._sleep = sleep
        self.logger = get_logger("submitter", log_level, "submitter.log")

    async def _submit_one(self, outcome: ValidationOutcome, service_id: str, acl_id: str) -> SubmissionResult:
        if isinstance(outcome, InvalidEntry):
            return SubmissionResult(original=outcome.original, status="invalid", ok=False, error=outcome.reason)

        entry = outcome.entry
        try:
            resp = await self.client.create_acl_entry(service_id, acl_id, entry, self.comment)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError, UnicodeError) as e:
            self.logger.error("Failed to submit %s: %s", entry.original, e)
            return SubmissionResult(
                original=entry.original,
                status="error",
                ok=False,
                error=str(e) or e.__class__.__name__,
            )

        if not resp.ok:
            self.logger.warning("Fastly rejected %s with HTTP %s", entry.original, resp.status)
        return SubmissionResult(original=entry.original, status=resp.status, ok=resp.ok, response=resp.body)

    async def _submit_batch(
        self, batch: Sequence[ValidationOutcome], service_id: str, acl_id: str
    ) -> List[SubmissionResult]:
        tasks = [self._submit_one(outcome, service_id, acl_id) for outcome in batch]
        return list(await asyncio.gather(*tasks))

    async def submit(
        self, outcomes: Sequence[ValidationOutcome], service_id: str, acl_id: str
    ) -> List[SubmissionResult]:
        batches = list(iter_batches(outcomes, self.batch_size))
        self.logger.info(
            "Submitting %d entries to ACL %s (service %s) in %d batches",
            len(outcomes), acl_id, service_id, len(batches),
        )
        results: List[SubmissionResult] = []

        for index, batch in enumerate(batches, start=1):
            with log_stage(self.logger, f"batch_{index}"):
                batch_results = await self._submit_batch(batch, service_id, acl_id)
            results.extend(batch_results)
            ok_count = sum(1 for r in batch_results if r.ok)
            log_metric(self.logger, "batch_entries_ok", ok_count, batch=index, size=len(batch))

            if index < len(batches) and self.pause_seconds > 0:
                await self._sleep(self.pause_seconds)

        return results


__all__ = ["BatchSubmitter", "iter_batches"]
