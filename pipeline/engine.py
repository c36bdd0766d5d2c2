# engine.py
from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Union

from models.ingestion_model import EntryParser
from models.schemas import UploadReport, ValidationOutcome
from models.validation_model import EntryValidator
from pipeline.errors import ConfigurationError, MissingFieldError, TooManyEntriesError
from pipeline.fastly_client import MISSING_KEY_MESSAGE, FastlyClient
from pipeline.submitter import BatchSubmitter
from utils.config_loader import UploaderSettings
from utils.logger import get_logger, log_metric, log_stage, new_run_id


def _decode_upload(content: Union[bytes, str]) -> str:
    if isinstance(content, str):
        return content
    return content.decode("utf-8-sig")


# ----------------------------------------------------------------------
# Orchestrator
# ----------------------------------------------------------------------
class UploadOrchestrator:
    """
    Orchestrates one bulk upload:
      preconditions -> parse -> limit check -> validate -> submit -> report

    Holds no state between runs; every call opens its own Fastly client.
    """

    def __init__(
        self,
        settings: UploaderSettings,
        client_factory: Callable[..., FastlyClient] = FastlyClient,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings
        self.client_factory = client_factory
        self._sleep = sleep
        self.logger = get_logger("engine.orchestrator", settings.log_level, "engine.log")
        self.parser = EntryParser(log_level=settings.log_level)
        self.validator = EntryValidator(log_level=settings.log_level)

    def _check_preconditions(
        self,
        service_id: Optional[str],
        acl_id: Optional[str],
        content: Optional[Union[bytes, str]],
    ) -> None:
        if not service_id:
            raise MissingFieldError("serviceId")
        if not acl_id:
            raise MissingFieldError("aclId")
        if not content:
            raise MissingFieldError("file")
        if not self.settings.api_key:
            raise ConfigurationError(MISSING_KEY_MESSAGE)

    def prepare(self, content: Union[bytes, str]) -> List[ValidationOutcome]:
        """Decode, parse, enforce the entry ceiling and validate an upload."""
        with log_stage(self.logger, "parse"):
            lines = self.parser.parse(_decode_upload(content))

        # The ceiling counts candidate lines, valid or not.
        if len(lines) > self.settings.max_entries:
            self.logger.warning(
                "Upload rejected: %d entries exceeds the limit of %d", len(lines), self.settings.max_entries
            )
            raise TooManyEntriesError(len(lines), self.settings.max_entries)

        return self.validator.validate_entries(lines)

    async def run(
        self,
        service_id: Optional[str],
        acl_id: Optional[str],
        content: Optional[Union[bytes, str]],
        comment: Optional[str] = None,
    ) -> UploadReport:
        run_id = new_run_id()
        self._check_preconditions(service_id, acl_id, content)
        if not (comment or "").strip():
            comment = self.settings.default_comment
        self.logger.info("Starting upload %s to service=%s acl=%s", run_id, service_id, acl_id)

        outcomes = self.prepare(content)

        client = self.client_factory(
            self.settings.api_key,
            base_url=self.settings.api_base_url,
            timeout=self.settings.request_timeout,
            log_level=self.settings.log_level,
        )
        async with client:
            submitter = BatchSubmitter(
                client,
                comment=comment,
                batch_size=self.settings.batch_size,
                pause_seconds=self.settings.batch_pause_seconds,
                sleep=self._sleep,
                log_level=self.settings.log_level,
            )
            with log_stage(self.logger, "submit"):
                results = await submitter.submit(outcomes, service_id, acl_id)

        report = UploadReport(processed=len(results), results=results)
        self.logger.info(
            "Upload complete | processed=%d ok=%d failed=%d invalid=%d",
            report.processed, report.succeeded, report.failed, report.invalid,
        )
        log_metric(self.logger, "upload_processed_total", report.processed, stage="upload")
        log_metric(self.logger, "upload_ok_total", report.succeeded, stage="upload")
        return report


# ----------------------------------------------------------------------
# Runner
# ----------------------------------------------------------------------
def run_upload(
    settings: UploaderSettings,
    service_id: str,
    acl_id: str,
    file_path: str,
    comment: Optional[str] = None,
    output: Optional[str] = None,
) -> UploadReport:
    """Run an upload synchronously from a local file, optionally writing the report as JSON."""
    logger = get_logger("engine.runner", settings.log_level, "engine.log")

    content = Path(file_path).read_bytes()
    orchestrator = UploadOrchestrator(settings)
    report = asyncio.run(orchestrator.run(service_id, acl_id, content, comment))

    if output:
        out_path = Path(output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with out_path.open("w", encoding="utf-8") as f:
            json.dump(report.model_dump(exclude_none=True), f, indent=2, ensure_ascii=False)
        logger.info("Upload report written to %s", out_path)

    return report
