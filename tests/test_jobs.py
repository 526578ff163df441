"""Upload, submission, polling, download and job management."""

import json
from types import SimpleNamespace

import pytest
from google.genai import errors as genai_errors

from gemini_batch_manager.core.batching import jobs
from gemini_batch_manager.core.batching.jobs import (
    build_submission_payload,
    cancel_batch_job,
    check_batch_status,
    create_batch_job,
    create_embeddings_batch_job,
    delete_batch_job,
    download_batch_results,
    file_name_from_uri,
    poll_batch_until_complete,
    poll_multiple_batch_jobs_parallel,
    upload_file,
    wait_for_file_processing,
)
from gemini_batch_manager.core.batching.models import BatchJob, JobState, RequestKind
from gemini_batch_manager.core.errors import (
    InvalidParamsError,
    NoResultsAvailableError,
    PollingTimeoutError,
    RemoteOperationFailedError,
)


def _api_error(code=503, message="Service unavailable"):
    return genai_errors.APIError(code, {"error": {"code": code, "message": message, "status": "UNAVAILABLE"}})


#=======================================================================
# Submission payloads
#=======================================================================

def test_content_file_payload():
    payload = build_submission_payload(RequestKind.CONTENT, "gemini-2.5-flash", file_name="files/abc")
    assert payload == {"model": "gemini-2.5-flash", "src": "files/abc"}


def test_file_uri_is_reduced_to_file_name():
    uri = "https://generativelanguage.googleapis.com/v1beta/files/abc123"
    assert file_name_from_uri(uri) == "files/abc123"
    assert file_name_from_uri("files/abc123") == "files/abc123"


def test_content_inline_payload_keeps_keys_and_config():
    requests = [
        "plain prompt",
        {"key": "k2", "request": {"contents": [{"parts": [{"text": "keyed"}]}]}},
    ]

    payload = build_submission_payload(
        RequestKind.CONTENT, "gemini-2.5-pro",
        inline_requests=requests,
        display_name="nightly",
        generation_config={"temperature": 0.1},
    )

    assert payload["config"] == {"display_name": "nightly"}
    first, second = payload["src"]
    assert first["contents"] == [{"role": "user", "parts": [{"text": "plain prompt"}]}]
    assert first["config"] == {"temperature": 0.1}
    assert second["metadata"] == {"key": "k2"}
    assert second["contents"] == [{"parts": [{"text": "keyed"}]}]


def test_embedding_file_payload():
    payload = build_submission_payload(
        RequestKind.EMBEDDING, "gemini-embedding-001",
        file_name="files/abc", task_type="CLUSTERING",
    )
    assert payload == {"model": "gemini-embedding-001", "src": {"file_name": "files/abc"}}


def test_embedding_inline_payload_carries_task_type():
    payload = build_submission_payload(
        RequestKind.EMBEDDING, "gemini-embedding-001",
        inline_requests=["one", {"request": {"content": {"parts": [{"text": "two"}]}}}],
        task_type="retrieval_query",
    )
    assert payload["src"] == {"inlined_requests": {
        "contents": [{"parts": [{"text": "one"}]}, {"parts": [{"text": "two"}]}],
        "config": {"task_type": "RETRIEVAL_QUERY"},
    }}


@pytest.mark.parametrize("kwargs", [
    {},
    {"inline_requests": ["a"], "file_name": "files/abc"},
    {"inline_requests": []},
    {"inline_requests": [{"request": {"prompt": "no contents"}}]},
])
def test_payload_requires_exactly_one_valid_source(kwargs):
    with pytest.raises(InvalidParamsError):
        build_submission_payload(RequestKind.CONTENT, "gemini-2.5-flash", **kwargs)


def test_embedding_payload_requires_task_type():
    with pytest.raises(InvalidParamsError):
        build_submission_payload(RequestKind.EMBEDDING, "gemini-embedding-001", file_name="files/abc")


#=======================================================================
# Upload and creation
#=======================================================================

def test_upload_file_uses_jsonl_mime_type(fake_client, write_file):
    path = write_file("requests.jsonl", '{"key": "a", "request": {"contents": []}}\n')

    uploaded = upload_file(fake_client, path)

    assert uploaded["name"] == "files/uploaded-1"
    assert uploaded["mimeType"] == "jsonl"
    assert fake_client.files.uploads[0]["config"] == {"mime_type": "jsonl", "display_name": "requests.jsonl"}


def test_upload_retries_transient_errors(fake_client, write_file, monkeypatch):
    monkeypatch.setattr(jobs._upload.retry, "sleep", lambda seconds: None)
    path = write_file("requests.jsonl", '{"key": "a", "request": {"contents": []}}\n')
    fake_client.files.upload_errors = [_api_error(), _api_error()]

    uploaded = upload_file(fake_client, path)

    assert uploaded["name"] == "files/uploaded-1"


def test_upload_gives_up_after_three_attempts(fake_client, write_file, monkeypatch):
    monkeypatch.setattr(jobs._upload.retry, "sleep", lambda seconds: None)
    path = write_file("requests.jsonl", '{"key": "a", "request": {"contents": []}}\n')
    fake_client.files.upload_errors = [_api_error(), _api_error(), _api_error(), _api_error()]

    with pytest.raises(RemoteOperationFailedError):
        upload_file(fake_client, path)

    assert len(fake_client.files.upload_errors) == 1


def test_upload_rejects_empty_file(fake_client, write_file):
    with pytest.raises(InvalidParamsError):
        upload_file(fake_client, write_file("empty.jsonl", ""))


def test_wait_for_file_processing(fake_client, fake_clock):
    fake_client.files.get_states = ["PROCESSING", "ACTIVE"]
    uploaded = SimpleNamespace(name="files/x", state="PROCESSING")

    result = wait_for_file_processing(fake_client, uploaded, sleep=fake_clock.sleep, clock=fake_clock)

    assert result.state == "ACTIVE"
    assert fake_clock.sleeps == [5, 5]


def test_wait_for_file_processing_failed(fake_client, fake_clock):
    fake_client.files.get_states = ["FAILED"]
    uploaded = SimpleNamespace(name="files/x", state="PROCESSING")

    with pytest.raises(RemoteOperationFailedError):
        wait_for_file_processing(fake_client, uploaded, sleep=fake_clock.sleep, clock=fake_clock)


def test_create_batch_job_returns_snapshot(fake_client):
    job = create_batch_job(fake_client, "gemini-2.5-flash", file_name="files/abc", display_name="run")

    assert job.name == "batches/job-1"
    assert job.state == JobState.PENDING
    assert fake_client.batches.created == [
        {"model": "gemini-2.5-flash", "src": "files/abc", "config": {"display_name": "run"}}
    ]


def test_create_embeddings_batch_job(fake_client):
    job = create_embeddings_batch_job(fake_client, "gemini-embedding-001", "CLASSIFICATION",
                                      file_name="files/abc")

    assert job.state == JobState.PENDING
    assert fake_client.batches.created_embeddings[0]["src"] == {"file_name": "files/abc"}


def test_create_wraps_remote_errors(fake_client):
    fake_client.batches.create_error = _api_error(400, "Invalid model")

    with pytest.raises(RemoteOperationFailedError, match="Invalid model"):
        create_batch_job(fake_client, "no-such-model", file_name="files/abc")


#=======================================================================
# Status and polling
#=======================================================================

def test_check_batch_status_normalizes_states(fake_client):
    fake_client.batches.states = ["BATCH_STATE_RUNNING"]
    assert check_batch_status(fake_client, "batches/1").state == JobState.RUNNING


def test_poll_fetches_once_per_non_terminal_state_plus_one(fake_client, fake_clock):
    fake_client.batches.states = ["JOB_STATE_PENDING", "JOB_STATE_RUNNING", "JOB_STATE_RUNNING",
                                  "JOB_STATE_SUCCEEDED"]

    job = poll_batch_until_complete(fake_client, "batches/1", interval_seconds=30,
                                    max_wait_seconds=3600, sleep=fake_clock.sleep, clock=fake_clock)

    assert job.state == JobState.SUCCEEDED
    assert fake_client.batches.get_calls == 4
    assert fake_clock.sleeps == [30, 30, 30]


@pytest.mark.parametrize("state", ["JOB_STATE_FAILED", "JOB_STATE_CANCELLED", "JOB_STATE_EXPIRED"])
def test_poll_returns_on_any_terminal_state(fake_client, fake_clock, state):
    fake_client.batches.states = [state]

    job = poll_batch_until_complete(fake_client, "batches/1", sleep=fake_clock.sleep, clock=fake_clock)

    assert job.is_terminal
    assert fake_client.batches.get_calls == 1


def test_poll_times_out_not_before_deadline(fake_client, fake_clock):
    fake_client.batches.states = ["JOB_STATE_RUNNING"]

    with pytest.raises(PollingTimeoutError):
        poll_batch_until_complete(fake_client, "batches/1", interval_seconds=30,
                                  max_wait_seconds=100, sleep=fake_clock.sleep, clock=fake_clock)

    assert fake_clock.now >= 100
    assert fake_client.batches.get_calls == 5


def test_poll_rejects_negative_interval(fake_client):
    with pytest.raises(InvalidParamsError):
        poll_batch_until_complete(fake_client, "batches/1", interval_seconds=-1)


def test_poll_multiple_jobs_in_parallel(fake_client):
    jobs_by_name, failed = poll_multiple_batch_jobs_parallel(
        fake_client, ["batches/1", "batches/2"], interval_seconds=0, max_wait_seconds=10
    )
    assert set(jobs_by_name) == {"batches/1", "batches/2"}
    assert failed == {}


#=======================================================================
# Download
#=======================================================================

def test_download_inline_results(fake_client, tmp_path):
    fake_client.batches.dest = {"inlined_responses": [
        {"response": {"candidates": [{"content": {"parts": [{"text": "Hi"}, {"text": " there"}]}}]}},
        {"error": {"code": 400, "message": "bad request"}},
    ]}

    results = download_batch_results(fake_client, "batches/1", tmp_path)

    assert results.results == ["Hi there", {"error": {"code": 400, "message": "bad request"}}]
    assert results.file_path.endswith(".json")
    with open(results.file_path, encoding="utf-8") as f:
        assert json.load(f) == results.results


def test_download_file_results_keeps_raw_bytes(fake_client, tmp_path):
    raw = b'{"key": "request-1", "response": {"text": "a"}}\n{"key": "request-2", "error": {}}\n'
    fake_client.batches.dest = {"file_name": "files/batch-out"}
    fake_client.files.downloads["files/batch-out"] = raw

    results = download_batch_results(fake_client, "batches/1", tmp_path / "results")

    assert [r["key"] for r in results.results] == ["request-1", "request-2"]
    assert results.file_path.endswith(".jsonl")
    with open(results.file_path, "rb") as f:
        assert f.read() == raw


def test_download_malformed_results_file_writes_nothing(fake_client, tmp_path):
    fake_client.batches.dest = {"file_name": "files/batch-out"}
    fake_client.files.downloads["files/batch-out"] = b'{"key": "a"}\n{oops\n'

    with pytest.raises(ValueError):
        download_batch_results(fake_client, "batches/1", tmp_path)

    assert list(tmp_path.iterdir()) == []


def test_download_without_destination(fake_client, tmp_path):
    with pytest.raises(NoResultsAvailableError):
        download_batch_results(fake_client, "batches/1", tmp_path / "results")

    assert not (tmp_path / "results").exists()


@pytest.mark.parametrize("fields, expected", [
    ({}, False),
    ({"dest_file_name": ""}, False),
    ({"dest_file_name": "files/out"}, True),
    ({"inlined_responses": []}, True),
])
def test_has_results(fields, expected):
    job = BatchJob(name="batches/1", state=JobState.SUCCEEDED, **fields)
    assert job.has_results is expected


def test_download_requires_terminal_job(fake_client, tmp_path):
    job = BatchJob(name="batches/1", state=JobState.RUNNING)
    with pytest.raises(InvalidParamsError):
        download_batch_results(fake_client, job, tmp_path)


#=======================================================================
# Cancel and delete
#=======================================================================

def test_cancel_then_poll_observes_cancelled(fake_client, fake_clock):
    fake_client.batches.states = ["JOB_STATE_RUNNING"]

    job = cancel_batch_job(fake_client, "batches/1")
    polled = poll_batch_until_complete(fake_client, "batches/1", sleep=fake_clock.sleep, clock=fake_clock)

    assert fake_client.batches.cancelled == ["batches/1"]
    assert job.state == JobState.CANCELLED
    assert polled.state == JobState.CANCELLED


def test_delete_returns_job_before_deletion(fake_client):
    fake_client.batches.states = ["JOB_STATE_SUCCEEDED"]

    job = delete_batch_job(fake_client, "batches/1")

    assert job.state == JobState.SUCCEEDED
    assert fake_client.batches.deleted == ["batches/1"]
