"""End-to-end workflows through GeminiBatchManager with a fake client."""

import json
from pathlib import Path

import pytest

from gemini_batch_manager.core.batching.manager import GeminiBatchManager
from gemini_batch_manager.core.errors import (
    NoResultsAvailableError,
    PollingTimeoutError,
    UnsupportedFormatError,
    ValidationFailedError,
)
from gemini_batch_manager.core.utils.settings import Settings


RESULTS_JSONL = (
    b'{"key": "request-1", "response": {"candidates": [{"content": {"parts": [{"text": "A"}]}}]}}\n'
    b'{"key": "request-2", "response": {"candidates": [{"content": {"parts": [{"text": "B"}]}}]}}\n'
)


@pytest.fixture
def manager(fake_client, fake_clock, tmp_path):
    fake_client.batches.dest = {"file_name": "files/batch-out"}
    fake_client.files.downloads["files/batch-out"] = RESULTS_JSONL
    return GeminiBatchManager(
        client=fake_client,
        output_location=tmp_path / "results",
        settings=Settings(poll_interval_seconds=10, max_wait_seconds=600),
        sleep=fake_clock.sleep,
        clock=fake_clock,
    )


def test_process_content_runs_every_stage(manager, fake_client, write_file, tmp_path):
    fake_client.batches.states = ["JOB_STATE_PENDING", "JOB_STATE_RUNNING", "JOB_STATE_SUCCEEDED"]
    source = write_file("prompts.csv", "text\nfirst\nsecond\n")

    outcome = manager.process_content(source, generation_config={"temperature": 0.0})

    assert outcome["batchName"] == "batches/job-1"
    assert outcome["state"] == "SUCCEEDED"
    assert outcome["ingestion"]["totalRequests"] == 2
    assert outcome["resultCount"] == 2
    assert Path(outcome["resultsFile"]).parent.name == "results"

    upload = fake_client.files.uploads[0]
    assert upload["file"].endswith("prompts_batch.jsonl")
    uploaded_lines = fake_client.files.uploaded_contents["files/uploaded-1"].splitlines()
    assert json.loads(uploaded_lines[0])["request"]["generation_config"] == {"temperature": 0.0}

    assert fake_client.batches.created[0]["model"] == "gemini-2.5-flash"
    assert fake_client.batches.created[0]["src"] == "files/uploaded-1"
    assert fake_client.batches.get_calls == 3


def test_process_content_uploads_jsonl_in_place(manager, fake_client, write_file):
    source = write_file("requests.jsonl", '{"key": "a", "request": {"contents": [{"parts": [{"text": "x"}]}]}}\n')

    manager.process_content(source, model="gemini-2.5-pro")

    assert fake_client.files.uploads[0]["file"] == str(source)
    assert fake_client.batches.created[0]["model"] == "gemini-2.5-pro"


def test_process_embeddings_recommends_task_type(manager, fake_client, write_file):
    source = write_file("products.txt", "red shoes\nblue hat\n")

    outcome = manager.process_embeddings(source, context="find similar products")

    assert outcome["taskType"] == "SEMANTIC_SIMILARITY"
    created = fake_client.batches.created_embeddings[0]
    assert created["model"] == "gemini-embedding-001"
    assert created["src"] == {"file_name": "files/uploaded-1"}
    lines = fake_client.files.uploaded_contents["files/uploaded-1"].splitlines()
    assert all(json.loads(line)["request"]["task_type"] == "SEMANTIC_SIMILARITY" for line in lines)


def test_invalid_input_is_rejected_before_upload(manager, fake_client, write_file):
    source = write_file("requests.jsonl", '{"key": "a", "request": {"contents": []}}\n{bad\n{"key": "c"}\n')

    with pytest.raises(ValidationFailedError) as excinfo:
        manager.process_content(source)

    assert excinfo.value.errors == [
        "Line 2: invalid JSON",
        "Line 3: missing required 'request.contents' or 'request.content' field",
    ]
    assert fake_client.files.uploads == []


def test_unsupported_format_is_rejected(manager, fake_client, write_file):
    with pytest.raises(UnsupportedFormatError):
        manager.process_content(write_file("data.xml", "<root/>"))
    assert fake_client.files.uploads == []


def test_binary_input_is_rejected_as_unsupported(manager, fake_client, tmp_path):
    source = tmp_path / "report.pdf"
    source.write_bytes(b"%PDF-1.7\n\xe2\xe3\xcf\xd3\n\x00\xff")

    with pytest.raises(UnsupportedFormatError):
        manager.process_content(source)
    assert fake_client.files.uploads == []


def test_embedding_file_is_rejected_by_content_workflow(manager, fake_client, write_file):
    source = write_file("embeddings.jsonl",
                        '{"key": "a", "request": {"content": {"parts": [{"text": "x"}]}, "task_type": "CLUSTERING"}}\n')

    with pytest.raises(ValidationFailedError) as excinfo:
        manager.process_content(source)

    assert excinfo.value.errors == ["Line 1: missing 'request.contents' for content request"]
    assert fake_client.files.uploads == []
    assert fake_client.batches.created == []


def test_failed_job_without_results(manager, fake_client, write_file):
    fake_client.batches.states = ["JOB_STATE_FAILED"]
    fake_client.batches.dest = {}

    with pytest.raises(NoResultsAvailableError):
        manager.process_content(write_file("notes.txt", "one\n"))


def test_timeout_propagates(manager, fake_client, fake_clock, write_file):
    fake_client.batches.states = ["JOB_STATE_RUNNING"]

    with pytest.raises(PollingTimeoutError):
        manager.process_content(write_file("notes.txt", "one\n"), max_wait_seconds=25)

    assert fake_clock.now >= 25


def test_get_status_auto_poll_uses_settings(manager, fake_client, fake_clock):
    fake_client.batches.states = ["JOB_STATE_RUNNING", "JOB_STATE_SUCCEEDED"]

    job = manager.get_status("batches/1", auto_poll=True)

    assert job.is_terminal
    assert fake_clock.sleeps == [10]


def test_create_inline_job_with_default_model(manager, fake_client):
    job = manager.create_job(inline_requests=["hello"])

    assert job.name == "batches/job-1"
    assert fake_client.batches.created[0]["src"][0]["contents"][0]["parts"] == [{"text": "hello"}]


def test_get_status_auto_poll_accepts_zero_interval(manager, fake_client, fake_clock):
    fake_client.batches.states = ["JOB_STATE_RUNNING", "JOB_STATE_SUCCEEDED"]

    manager.get_status("batches/1", auto_poll=True, poll_interval_seconds=0)

    assert fake_clock.sleeps == [0]
