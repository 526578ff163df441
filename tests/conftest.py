"""Shared pytest fixtures: an in-memory stand-in for the Gemini client."""

from pathlib import Path
from types import SimpleNamespace

import pytest


class FakeFiles:
    def __init__(self):
        self.uploads = []
        self.uploaded_contents = {}
        self.downloads = {}
        self.upload_state = "ACTIVE"
        self.get_states = []
        self.upload_errors = []

    def upload(self, file, config=None):
        if self.upload_errors:
            raise self.upload_errors.pop(0)
        name = f"files/uploaded-{len(self.uploads) + 1}"
        self.uploads.append({"file": file, "config": config, "name": name})
        self.uploaded_contents[name] = Path(file).read_text(encoding="utf-8")
        return SimpleNamespace(
            name=name,
            uri=f"https://generativelanguage.googleapis.com/v1beta/{name}",
            state=self.upload_state,
        )

    def get(self, name):
        state = self.get_states.pop(0) if self.get_states else "ACTIVE"
        return SimpleNamespace(name=name, uri=None, state=state)

    def download(self, file):
        return self.downloads[file]


class FakeBatches:
    """
    Returns scripted job snapshots. `states` is consumed one per `get` call;
    the last state repeats once the script is exhausted.
    """

    def __init__(self):
        self.created = []
        self.created_embeddings = []
        self.states = ["JOB_STATE_SUCCEEDED"]
        self.dest = {}
        self.get_calls = 0
        self.cancelled = []
        self.deleted = []
        self.create_error = None

    def _job(self, name, state):
        job = {"name": name, "state": state, "model": "models/gemini-2.5-flash"}
        if self.dest:
            job["dest"] = self.dest
        return job

    def create(self, model, src, config=None):
        if self.create_error is not None:
            raise self.create_error
        self.created.append({"model": model, "src": src, "config": config})
        return {"name": "batches/job-1", "state": "JOB_STATE_PENDING", "model": model}

    def create_embeddings(self, model, src, config=None):
        self.created_embeddings.append({"model": model, "src": src, "config": config})
        return {"name": "batches/embed-1", "state": "BATCH_STATE_PENDING", "model": model}

    def get(self, name):
        self.get_calls += 1
        state = self.states.pop(0) if len(self.states) > 1 else self.states[0]
        return self._job(name, state)

    def cancel(self, name):
        self.cancelled.append(name)
        self.states = ["JOB_STATE_CANCELLED"]

    def delete(self, name):
        self.deleted.append(name)


class FakeClient:
    def __init__(self):
        self.files = FakeFiles()
        self.batches = FakeBatches()


class FakeClock:
    """Monotonic clock advanced only by its own `sleep`."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def write_file(tmp_path):
    def _write(name, content):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path
    return _write
