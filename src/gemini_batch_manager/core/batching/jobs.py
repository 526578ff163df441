# -*- coding: utf-8 -*-
"""
This module provides functions to manage Gemini Batch jobs, including uploading
request files, creating content and embeddings jobs, checking and polling their
status, downloading results, and cancelling or deleting jobs.
Only file uploads are retried on transient errors. Status checks and job
creation surface remote errors to the caller as they happen.
"""


import os
import time
import mimetypes
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, List, Optional

from google import genai
from google.genai import errors as genai_errors
from tenacity import (retry, retry_if_exception_type, stop_after_attempt,
                      wait_incrementing)

from ..errors import (
    InvalidParamsError,
    NoResultsAvailableError,
    PollingTimeoutError,
    RemoteOperationFailedError,
)
from ..utils.misc import ensure_output_path, mask_path, timestamped_path, write_json
from .models import BatchJob, BatchResults, JobState, RequestKind
from .parse import parse_inline_responses, parse_results_jsonl
from .tasks import parse_task_type

DEFAULT_POLL_INTERVAL_SECONDS = 30
DEFAULT_MAX_WAIT_SECONDS = 24 * 60 * 60   # Service turnaround target
POLL_MAX_WORKERS = 8

FILE_PROCESSING_CHECK_INTERVAL = 5        # Seconds between file state checks
FILE_PROCESSING_MAX_WAIT = 120            # Seconds before giving up on a file


retry_on_transient_upload_errors = retry(
    retry=retry_if_exception_type(genai_errors.APIError),
    wait=wait_incrementing(start=2, increment=2),
    stop=stop_after_attempt(3),
    reraise=True
)


@contextmanager
def _remote_operation(action):
    """Re-raise Gemini API errors as RemoteOperationFailedError."""
    try:
        yield
    except genai_errors.APIError as e:
        logging.error(f"Failed to {action}: {e}")
        raise RemoteOperationFailedError(f"Failed to {action}: {e}") from e


def _state_name(state):
    return str(getattr(state, "value", state) or "").upper()


#=============================================================================
# File Upload
#=============================================================================

def guess_mime_type(path):
    """JSONL request files are uploaded as `jsonl`, anything else by extension."""
    suffix = Path(path).suffix.lower()
    if suffix in ('.jsonl', '.ndjson'):
        return 'jsonl'
    mime_type, _ = mimetypes.guess_type(str(path))
    return mime_type or 'text/plain'


@retry_on_transient_upload_errors
def _upload(client, path, mime_type, display_name):
    logging.info(f"Uploading {mask_path(path)}...")
    return client.files.upload(
        file=str(path),
        config={'mime_type': mime_type, 'display_name': display_name}
    )


def wait_for_file_processing(
        client: genai.Client,
        uploaded_file,
        check_interval: float = FILE_PROCESSING_CHECK_INTERVAL,
        max_wait: float = FILE_PROCESSING_MAX_WAIT,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic
    ):
    """
    Wait until an uploaded file leaves the PROCESSING state.

    Raises:
        RemoteOperationFailedError: If the file ends up FAILED or is still
            processing after `max_wait` seconds.
    """
    start = clock()
    current = uploaded_file
    while _state_name(current.state) == "PROCESSING":
        if clock() - start > max_wait:
            raise RemoteOperationFailedError(f"File processing timeout for {uploaded_file.name}")
        logging.info(f"Waiting for {uploaded_file.name} to process...")
        sleep(check_interval)
        with _remote_operation(f"get file {uploaded_file.name}"):
            current = client.files.get(name=uploaded_file.name)

    if _state_name(current.state) == "FAILED":
        raise RemoteOperationFailedError(f"File processing failed for {uploaded_file.name}")
    return current


def upload_file(
        client: genai.Client,
        path: str | Path,
        display_name: Optional[str] = None,
        mime_type: Optional[str] = None,
        wait_for_processing: bool = True
    ) -> dict:
    """
    Upload a file to the Gemini File API.

    Transient API errors are retried up to 3 attempts.

    Args:
        client: Gemini API client.
        path (str): Local file to upload.
        display_name (str, optional): Defaults to the file name.
        mime_type (str, optional): Defaults to a guess from the extension.
        wait_for_processing (bool): Block until the file is ACTIVE.

    Returns:
        dict: `name`, `uri`, `state`, `mimeType` and `displayName` of the uploaded file.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"File to upload not found: {path}")
    if os.path.getsize(path) == 0:
        raise InvalidParamsError(f"File to upload is empty: {path}")

    display_name = display_name or Path(path).name
    mime_type = mime_type or guess_mime_type(path)

    with _remote_operation(f"upload {mask_path(path)}"):
        uploaded = _upload(client, path, mime_type, display_name)

    if wait_for_processing:
        uploaded = wait_for_file_processing(client, uploaded)

    logging.info(f"Uploaded {mask_path(path)} as {uploaded.name}")
    return {
        'name': uploaded.name,
        'uri': getattr(uploaded, 'uri', None),
        'state': _state_name(uploaded.state) or None,
        'mimeType': mime_type,
        'displayName': display_name,
    }


#=============================================================================
# Batch Job Submission
#=============================================================================

def file_name_from_uri(file_ref: str) -> str:
    """
    Accept either a File API name (`files/abc`) or its full URI
    (`https://generativelanguage.googleapis.com/v1beta/files/abc`).
    """
    file_ref = file_ref.strip()
    if "://" in file_ref and "/files/" in file_ref:
        return "files/" + file_ref.rsplit("/files/", 1)[1]
    return file_ref


def _to_inline_content_request(item, index, generation_config=None):
    if isinstance(item, str):
        inline = {'contents': [{'role': 'user', 'parts': [{'text': item}]}]}
        key = None
    elif isinstance(item, dict) and isinstance(item.get('request'), dict):
        request = item['request']
        if 'contents' not in request:
            raise InvalidParamsError(f"Request {index}: missing 'contents' field")
        inline = {'contents': request['contents']}
        config = request.get('generation_config') or request.get('config')
        if config:
            inline['config'] = dict(config)
        key = item.get('key')
    elif isinstance(item, dict) and 'contents' in item:
        inline = dict(item)
        key = None
    else:
        raise InvalidParamsError(f"Request {index}: missing 'contents' field")

    if generation_config:
        inline['config'] = {**inline.get('config', {}), **generation_config}
    if key is not None:
        inline['metadata'] = {**inline.get('metadata', {}), 'key': str(key)}
    return inline


def _to_inline_embedding_content(item, index):
    if isinstance(item, str):
        return {'parts': [{'text': item}]}
    if isinstance(item, dict):
        request = item.get('request') if isinstance(item.get('request'), dict) else item
        if isinstance(request.get('content'), dict):
            return request['content']
    raise InvalidParamsError(f"Request {index}: missing 'content' field")


def build_submission_payload(
        kind: RequestKind,
        model: str,
        inline_requests: Optional[List] = None,
        file_name: Optional[str] = None,
        display_name: Optional[str] = None,
        task_type=None,
        generation_config: Optional[dict] = None
    ) -> dict:
    """
    Build the keyword arguments for `client.batches.create` (content) or
    `client.batches.create_embeddings` (embeddings).

    Content and embedding jobs use different envelopes:

        content,   file:    src="files/..."
        content,   inline:  src=[{"contents": [...], "metadata": {"key": ...}}, ...]
        embedding, file:    src={"file_name": "files/..."}
        embedding, inline:  src={"inlined_requests": {"contents": [...],
                                                       "config": {"task_type": ...}}}

    For file-based embedding jobs the task type travels in each JSONL line.

    Raises:
        InvalidParamsError: If not exactly one of `inline_requests` and
            `file_name` is given, if inline requests are malformed, or if an
            embedding job has no valid task type.
    """
    kind = RequestKind(kind)
    if not model:
        raise InvalidParamsError("A model is required to create a batch job.")
    has_inline = inline_requests is not None
    has_file = bool(file_name)
    if has_inline == has_file:
        raise InvalidParamsError("Provide exactly one of inline requests or an uploaded file name.")
    if has_inline and (not isinstance(inline_requests, list) or not inline_requests):
        raise InvalidParamsError("Inline requests must be a non-empty list.")

    if kind == RequestKind.EMBEDDING:
        task_type = parse_task_type(task_type).value
        if has_file:
            src = {'file_name': file_name_from_uri(file_name)}
        else:
            src = {'inlined_requests': {
                'contents': [
                    _to_inline_embedding_content(item, i)
                    for i, item in enumerate(inline_requests)
                ],
                'config': {'task_type': task_type},
            }}
    else:
        if has_file:
            src = file_name_from_uri(file_name)
        else:
            src = [
                _to_inline_content_request(item, i, generation_config)
                for i, item in enumerate(inline_requests)
            ]

    payload = {'model': model, 'src': src}
    if display_name:
        payload['config'] = {'display_name': display_name}
    return payload


def create_batch_job(
        client: genai.Client,
        model: str,
        inline_requests: Optional[List] = None,
        file_name: Optional[str] = None,
        display_name: Optional[str] = None,
        generation_config: Optional[dict] = None
    ) -> BatchJob:
    """
    Create a content generation batch job.

    The JSONL file behind `file_name` is not validated here; validate it
    before uploading.

    Returns:
        BatchJob: Snapshot of the created job (PENDING or RUNNING).
    """
    payload = build_submission_payload(
        RequestKind.CONTENT, model,
        inline_requests=inline_requests,
        file_name=file_name,
        display_name=display_name,
        generation_config=generation_config
    )
    logging.info(f"Creating content batch job with model {model}...")
    with _remote_operation("create content batch job"):
        job = BatchJob.from_remote(client.batches.create(**payload))
    logging.info(f"Batch job created with name: {job.name} ({job.state.value})")
    return job


def create_embeddings_batch_job(
        client: genai.Client,
        model: str,
        task_type,
        inline_requests: Optional[List] = None,
        file_name: Optional[str] = None,
        display_name: Optional[str] = None
    ) -> BatchJob:
    """
    Create an embeddings batch job.

    Returns:
        BatchJob: Snapshot of the created job (PENDING or RUNNING).
    """
    payload = build_submission_payload(
        RequestKind.EMBEDDING, model,
        inline_requests=inline_requests,
        file_name=file_name,
        display_name=display_name,
        task_type=task_type
    )
    logging.info(f"Creating embeddings batch job with model {model}...")
    with _remote_operation("create embeddings batch job"):
        job = BatchJob.from_remote(client.batches.create_embeddings(**payload))
    logging.info(f"Embeddings batch job created with name: {job.name} ({job.state.value})")
    return job


#=============================================================================
# Batch Status Checking
#=============================================================================

def check_batch_status(
        client: genai.Client,
        batch_name: str,
        verbose: int = 2
    ) -> BatchJob:
    """
    Fetch the current state of a batch job. No retry is applied.

    Args:
        client: Gemini API client.
        batch_name (str): The job name, e.g. "batches/abc123".
        verbose (int): Verbosity level for logging:
            0 - minimal output,
            1 - basic status info,
            2 - detailed status info.

    Returns:
        BatchJob: A fresh snapshot of the job.
    """
    if not batch_name:
        raise InvalidParamsError("A batch job name is required.")
    if verbose > 0:
        logging.info(f"Checking status for batch job {batch_name}")
    with _remote_operation(f"get batch job {batch_name}"):
        job = BatchJob.from_remote(client.batches.get(name=batch_name))

    if verbose > 1:
        if job.state == JobState.FAILED:
            logging.error(f"Batch {batch_name} failed with error: {job.error}")
        elif job.state == JobState.RUNNING and job.stats:
            done = job.stats['successCount'] + job.stats['failCount']
            total = job.stats['totalCount'] or 1
            logging.info(f"Batch {batch_name} is running, {done} requests done ({done / total * 100:.2f}%)")
        elif job.state == JobState.SUCCEEDED:
            logging.info(f"Batch {batch_name} has succeeded")
        else:
            logging.info(f"Batch {batch_name} is in state: {job.state.value}")
    return job


def poll_batch_until_complete(
        client: genai.Client,
        batch_name: str,
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        max_wait_seconds: float = DEFAULT_MAX_WAIT_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        verbose: int = 1
    ) -> BatchJob:
    """
    Fetch the job state every `interval_seconds` until it is terminal
    (SUCCEEDED, FAILED, CANCELLED or EXPIRED).

    The interval is constant. A fetch error ends the loop immediately.

    Args:
        client: Gemini API client.
        batch_name (str): The job name.
        interval_seconds (float): Pause between fetches.
        max_wait_seconds (float): Deadline measured from the first fetch.
        sleep, clock: Injectable time functions.
        verbose (int): Verbosity passed to `check_batch_status`.

    Returns:
        BatchJob: The first terminal snapshot observed.

    Raises:
        PollingTimeoutError: If the deadline passes while the job is still
            PENDING or RUNNING. The job may keep running remotely.
    """
    if interval_seconds < 0:
        raise InvalidParamsError("Poll interval must not be negative.")
    if max_wait_seconds <= 0:
        raise InvalidParamsError("Maximum wait must be positive.")

    logging.info(f"Polling status for job {batch_name} every {interval_seconds}s")
    start = clock()

    while True:
        job = check_batch_status(client, batch_name, verbose=verbose)
        if job.is_terminal:
            logging.info(f"Job {batch_name} finished with state: {job.state.value}")
            return job

        elapsed = clock() - start
        if elapsed >= max_wait_seconds:
            raise PollingTimeoutError(
                f"Batch job {batch_name} still {job.state.value} after "
                f"{elapsed:.0f}s (limit {max_wait_seconds}s)"
            )
        sleep(interval_seconds)


def poll_multiple_batch_jobs_parallel(
        client: genai.Client,
        batch_names: List[str],
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        max_wait_seconds: float = DEFAULT_MAX_WAIT_SECONDS,
        max_workers: int = POLL_MAX_WORKERS
    ):
    """
    Poll several batch jobs concurrently, each in its own loop.

    Returns:
        dict: Job name -> terminal BatchJob.
        dict: Job name -> error message, for loops that failed or timed out.
    """
    logging.info(f"Polling {len(batch_names)} batch jobs in parallel (max_workers={max_workers})...")
    jobs = {}
    failed = {}

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_name = {
            executor.submit(
                poll_batch_until_complete,
                client, name, interval_seconds, max_wait_seconds
            ): name
            for name in batch_names
        }
        for future in as_completed(future_to_name):
            name = future_to_name[future]
            try:
                jobs[name] = future.result()
            except Exception as e:
                failed[name] = str(e)
                logging.warning(f"Polling failed for {name}: {e}")

    logging.info(f"Polling complete: {len(jobs)} finished, {len(failed)} failed.")
    return jobs, failed


#=============================================================================
# Batch Result Downloading
#=============================================================================

def download_batch_results(
        client: genai.Client,
        job: BatchJob | str,
        output_folder: str | Path
    ) -> BatchResults:
    """
    Download and parse the results of a finished batch job.

    Inline results are saved as a pretty-printed JSON array. File results
    are saved byte for byte as JSONL. Results keep the order the service
    returned them in.

    Args:
        client: Gemini API client.
        job (BatchJob | str): A terminal job snapshot, or a job name to fetch.
        output_folder (str): Folder where the results file is written.

    Returns:
        BatchResults: Parsed results and the path of the saved file.

    Raises:
        InvalidParamsError: If the job is not finished yet.
        NoResultsAvailableError: If the job has no results destination.
        ValueError: If a line of the results file is not valid JSON.
    """
    if isinstance(job, str):
        job = check_batch_status(client, job, verbose=0)

    if not job.is_terminal:
        raise InvalidParamsError(f"Batch job {job.name} is not complete (state: {job.state.value})")
    if job.state != JobState.SUCCEEDED:
        logging.warning(f"Batch job {job.name} ended as {job.state.value}; results may be partial")
    if not job.has_results:
        raise NoResultsAvailableError(f"No results found in batch job {job.name}")

    ensure_output_path(str(output_folder), "Output folder")

    if job.inlined_responses is not None:
        results = parse_inline_responses(job.inlined_responses)
        result_path = timestamped_path(output_folder, "batch_results", ".json")
        write_json(results, result_path)
        logging.info(f"{len(results)} inline results saved to {mask_path(result_path)}")
        return BatchResults(results=results, file_path=str(result_path))

    logging.info(f"Downloading results file {job.dest_file_name} for {job.name}...")
    with _remote_operation(f"download {job.dest_file_name}"):
        content = client.files.download(file=job.dest_file_name)
    results = parse_results_jsonl(content)
    result_path = timestamped_path(output_folder, "batch_results", ".jsonl")
    with open(result_path, 'wb') as f:
        f.write(content)
    logging.info(f"{len(results)} results downloaded to {mask_path(result_path)}")
    return BatchResults(results=results, file_path=str(result_path))


#==============================================================================
# Batch Job Management
#==============================================================================

def cancel_batch_job(client: genai.Client, batch_name: str) -> BatchJob:
    """
    Request cancellation of a batch job. A poll loop running on the same job
    sees the CANCELLED state on its next fetch.

    Returns:
        BatchJob: A snapshot fetched after the cancel request.
    """
    logging.info(f"Cancelling batch job {batch_name}...")
    with _remote_operation(f"cancel batch job {batch_name}"):
        client.batches.cancel(name=batch_name)
    logging.info(f"Cancellation requested for {batch_name}.")
    return check_batch_status(client, batch_name, verbose=0)


def delete_batch_job(client: genai.Client, batch_name: str) -> BatchJob:
    """
    Delete a batch job. Results not downloaded yet are lost.

    Returns:
        BatchJob: The job as it was right before deletion.
    """
    job = check_batch_status(client, batch_name, verbose=0)
    logging.info(f"Deleting batch job {batch_name}...")
    with _remote_operation(f"delete batch job {batch_name}"):
        client.batches.delete(name=batch_name)
    logging.info(f"Batch job {batch_name} deleted.")
    return job
