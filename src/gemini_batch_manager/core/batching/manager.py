# -*- coding: utf-8 -*-

import time
import logging
from pathlib import Path
from typing import Callable, List, Optional

from google import genai

from ..errors import UnsupportedFormatError, ValidationFailedError
from ..utils.misc import assert_required_path, ensure_output_path, mask_path
from ..utils.settings import Settings
from .files import (
    CONVERTIBLE_FORMATS,
    detect_source_format,
    ingest_content,
    ingest_embeddings,
    validate_request_file,
)
from .jobs import (
    cancel_batch_job,
    check_batch_status,
    create_batch_job,
    create_embeddings_batch_job,
    delete_batch_job,
    download_batch_results,
    poll_batch_until_complete,
    upload_file,
)
from .models import BatchJob, BatchResults, IngestionReport, RequestKind, SourceFormat
from .tasks import parse_task_type, query_task_type, recommend_task_type
from .validation import validate_jsonl


class GeminiBatchManager:
    """
    A class to run Gemini Batch API workflows: ingest local files, submit
    content or embeddings jobs, wait for them and collect their results.

    The manager keeps no record of the jobs it creates. Every call works from
    its arguments and the remote job state.
    """

    def __init__(
        self,
        client: genai.Client,
        output_location: str | Path | None = None,
        settings: Optional[Settings] = None,
        show_progress: bool = False,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic
    ):
        self.client = client
        self.settings = settings or Settings()
        self.output_location = Path(output_location or self.settings.output_location).resolve()
        self.show_progress = show_progress
        self._sleep = sleep
        self._clock = clock

    def __output_folder(self, output_location=None) -> Path:
        folder = Path(output_location).resolve() if output_location else self.output_location
        ensure_output_path(str(folder), description="Output location")
        return folder

    #=========================================================================
    # Ingestion
    #=========================================================================

    def ingest_content(
            self,
            input_file: str | Path,
            output_file: str | Path | None = None,
            text_field: Optional[str] = None,
            generation_config: Optional[dict] = None
        ) -> IngestionReport:
        """Convert a source file into a content request JSONL file and validate it."""
        assert_required_path(input_file, description="Input file")
        return ingest_content(
            input_file,
            output_file=str(output_file) if output_file else None,
            text_field=text_field,
            generation_config=generation_config,
            show_progress=self.show_progress
        )

    def ingest_embeddings(
            self,
            input_file: str | Path,
            task_type: str,
            output_file: str | Path | None = None,
            text_field: Optional[str] = None
        ) -> IngestionReport:
        """Convert a source file into an embeddings request JSONL file and validate it."""
        assert_required_path(input_file, description="Input file")
        return ingest_embeddings(
            input_file,
            task_type,
            output_file=str(output_file) if output_file else None,
            text_field=text_field,
            show_progress=self.show_progress
        )

    def validate(self, jsonl_file: str | Path):
        assert_required_path(jsonl_file, description="Request file")
        return validate_jsonl(jsonl_file)

    #=========================================================================
    # Remote Job Operations
    #=========================================================================

    def upload(self, file_path: str | Path, display_name: Optional[str] = None) -> dict:
        return upload_file(self.client, file_path, display_name=display_name)

    def create_job(
            self,
            model: Optional[str] = None,
            input_file_name: Optional[str] = None,
            inline_requests: Optional[List] = None,
            display_name: Optional[str] = None,
            generation_config: Optional[dict] = None
        ) -> BatchJob:
        """
        Create a content generation batch job from an uploaded file or from
        inline requests. The model defaults to the configured content model.
        """
        return create_batch_job(
            self.client,
            model or self.settings.content_model,
            inline_requests=inline_requests,
            file_name=input_file_name,
            display_name=display_name,
            generation_config=generation_config
        )

    def create_embeddings_job(
            self,
            task_type: str,
            model: Optional[str] = None,
            input_file_name: Optional[str] = None,
            inline_requests: Optional[List] = None,
            display_name: Optional[str] = None
        ) -> BatchJob:
        """Create an embeddings batch job. The task type is required."""
        return create_embeddings_batch_job(
            self.client,
            model or self.settings.embedding_model,
            task_type,
            inline_requests=inline_requests,
            file_name=input_file_name,
            display_name=display_name
        )

    def get_status(
            self,
            batch_name: str,
            auto_poll: bool = False,
            poll_interval_seconds: Optional[float] = None,
            max_wait_seconds: Optional[float] = None,
            verbose: int = 2
        ) -> BatchJob:
        """
        Get the state of a batch job. With `auto_poll`, wait until the job
        reaches a terminal state first.
        """
        if not auto_poll:
            return check_batch_status(self.client, batch_name, verbose=verbose)
        return poll_batch_until_complete(
            self.client,
            batch_name,
            interval_seconds=(self.settings.poll_interval_seconds if poll_interval_seconds is None
                              else poll_interval_seconds),
            max_wait_seconds=(self.settings.max_wait_seconds if max_wait_seconds is None
                              else max_wait_seconds),
            sleep=self._sleep,
            clock=self._clock
        )

    def download_results(
            self,
            batch: BatchJob | str,
            output_location: str | Path | None = None
        ) -> BatchResults:
        """Download the results of a finished job into the output location."""
        return download_batch_results(self.client, batch, self.__output_folder(output_location))

    def cancel(self, batch_name: str) -> BatchJob:
        return cancel_batch_job(self.client, batch_name)

    def delete(self, batch_name: str) -> BatchJob:
        return delete_batch_job(self.client, batch_name)

    def query_task_type(self, context: Optional[str] = None, sample_content: Optional[List[str]] = None) -> dict:
        return query_task_type(context, sample_content)

    #=========================================================================
    # End-to-end Workflows
    #=========================================================================

    def _prepare_request_file(self, input_file, kind, task_type=None,
                              text_field=None, generation_config=None) -> IngestionReport:
        """
        Produce a validated request file for `input_file`. JSONL inputs are
        validated in place, other formats are converted first.

        Raises:
            UnsupportedFormatError: If the input cannot be converted.
            ValidationFailedError: If the request file has any error.
        """
        assert_required_path(input_file, description="Input file")
        descriptor = detect_source_format(input_file)

        if descriptor.format not in CONVERTIBLE_FORMATS:
            raise UnsupportedFormatError(
                f"Unsupported format '{descriptor.format.value}' for {mask_path(input_file)}"
            )

        if descriptor.format == SourceFormat.JSONL:
            report = validate_request_file(input_file, kind, task_type=task_type)
        elif kind == RequestKind.EMBEDDING:
            report = self.ingest_embeddings(input_file, task_type, text_field=text_field)
        else:
            report = self.ingest_content(input_file, text_field=text_field,
                                         generation_config=generation_config)

        if not report.validation_passed:
            for error in report.errors:
                logging.error(error)
            raise ValidationFailedError(
                f"Request file for {mask_path(input_file)} has {len(report.errors)} error(s)",
                errors=report.errors
            )
        if report.total_requests == 0:
            raise ValidationFailedError(f"No requests found in {mask_path(input_file)}",
                                        errors=["No requests found"])
        return report

    def _submit_and_collect(self, report, job, output_location, poll_interval_seconds, max_wait_seconds):
        logging.info(f"Job {job.name} submitted with {report.total_requests} requests")
        job = self.get_status(
            job.name,
            auto_poll=True,
            poll_interval_seconds=poll_interval_seconds,
            max_wait_seconds=max_wait_seconds
        )
        results = self.download_results(job, output_location)
        return {
            'batchName': job.name,
            'state': job.state.value,
            'ingestion': report.to_dict(),
            'results': results.results,
            'resultCount': len(results.results),
            'resultsFile': results.file_path,
        }

    def process_content(
            self,
            input_file: str | Path,
            model: Optional[str] = None,
            output_location: str | Path | None = None,
            poll_interval_seconds: Optional[float] = None,
            max_wait_seconds: Optional[float] = None,
            generation_config: Optional[dict] = None,
            text_field: Optional[str] = None,
            display_name: Optional[str] = None
        ) -> dict:
        """
        Run the full content generation workflow for one input file:
        detect, convert, validate, upload, submit, wait and download.

        Args:
            input_file (str): CSV, JSON, TXT, MD or JSONL source.
            model (str, optional): Defaults to the configured content model.
            output_location (str, optional): Folder for the results file.
            poll_interval_seconds (float, optional): Pause between status checks.
            max_wait_seconds (float, optional): Polling deadline.
            generation_config (dict, optional): Applied to every converted request.
            text_field (str, optional): CSV column or JSON field holding the prompt.
            display_name (str, optional): Job display name.

        Returns:
            dict: `batchName`, `state`, `ingestion`, `results`, `resultCount`
                and `resultsFile`.

        Raises:
            UnsupportedFormatError, ValidationFailedError: Before anything is uploaded.
            RemoteOperationFailedError, PollingTimeoutError, NoResultsAvailableError:
                From the remote stages.
        """
        report = self._prepare_request_file(
            input_file, RequestKind.CONTENT,
            text_field=text_field,
            generation_config=generation_config
        )
        uploaded = self.upload(report.output_file)
        job = self.create_job(
            model=model,
            input_file_name=uploaded['name'],
            display_name=display_name or Path(input_file).stem
        )
        return self._submit_and_collect(report, job, output_location,
                                        poll_interval_seconds, max_wait_seconds)

    def process_embeddings(
            self,
            input_file: str | Path,
            task_type: Optional[str] = None,
            context: Optional[str] = None,
            model: Optional[str] = None,
            output_location: str | Path | None = None,
            poll_interval_seconds: Optional[float] = None,
            max_wait_seconds: Optional[float] = None,
            text_field: Optional[str] = None,
            display_name: Optional[str] = None
        ) -> dict:
        """
        Run the full embeddings workflow for one input file.

        When no task type is given, one is recommended from `context`.

        Returns:
            dict: Same shape as `process_content`, plus `taskType`.
        """
        if task_type is None:
            recommendation = recommend_task_type(context)
            task_type = recommendation.selected_task_type
            logging.info(f"No task type given, using {task_type}: {recommendation.reasoning}")
        task_type = parse_task_type(task_type).value

        report = self._prepare_request_file(
            input_file, RequestKind.EMBEDDING,
            task_type=task_type,
            text_field=text_field
        )
        uploaded = self.upload(report.output_file)
        job = self.create_embeddings_job(
            task_type,
            model=model,
            input_file_name=uploaded['name'],
            display_name=display_name or Path(input_file).stem
        )
        outcome = self._submit_and_collect(report, job, output_location,
                                           poll_interval_seconds, max_wait_seconds)
        outcome['taskType'] = task_type
        return outcome
