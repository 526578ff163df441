# -*- coding: utf-8 -*-

"""
Data records exchanged between the batch pipeline stages.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class RequestKind(str, Enum):
    """Which request schema a JSONL file or batch job uses."""
    CONTENT = "content"
    EMBEDDING = "embedding"


class SourceFormat(str, Enum):
    JSONL = "jsonl"
    JSON = "json"
    CSV = "csv"
    TEXT = "text"
    XML = "xml"
    UNKNOWN = "unknown"


class JobState(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


TERMINAL_STATES = frozenset({
    JobState.SUCCEEDED,
    JobState.FAILED,
    JobState.CANCELLED,
    JobState.EXPIRED,
})

# Remote states outside the six we report on.
_STATE_ALIASES = {
    "UNSPECIFIED": JobState.PENDING,
    "QUEUED": JobState.PENDING,
    "CANCELLING": JobState.RUNNING,
    "PAUSED": JobState.RUNNING,
    "UPDATING": JobState.RUNNING,
    "PARTIALLY_SUCCEEDED": JobState.SUCCEEDED,
}


def normalize_job_state(raw_state) -> JobState:
    """
    Map a remote job state (e.g. "JOB_STATE_SUCCEEDED", "BATCH_STATE_RUNNING"
    or an enum member) onto a JobState.
    """
    if isinstance(raw_state, JobState):
        return raw_state
    if raw_state is None:
        return JobState.PENDING
    value = getattr(raw_state, "value", raw_state)
    value = str(value).upper()
    for prefix in ("JOB_STATE_", "BATCH_STATE_"):
        if value.startswith(prefix):
            value = value[len(prefix):]
            break
    if value in _STATE_ALIASES:
        return _STATE_ALIASES[value]
    try:
        return JobState(value)
    except ValueError:
        raise ValueError(f"Unknown batch job state: {raw_state}")


@dataclass(frozen=True)
class SourceDescriptor:
    """Result of inspecting a source file before conversion."""
    path: str
    format: SourceFormat
    structure: Dict[str, Any] = field(default_factory=dict)
    complexity: str = "simple"

    def to_dict(self):
        return {
            "path": self.path,
            "format": self.format.value,
            "structure": dict(self.structure),
            "complexity": self.complexity,
        }


@dataclass(frozen=True)
class IngestionReport:
    """Outcome of converting one source file into a JSONL request file."""
    source_file: str
    output_file: str
    source_format: str
    total_requests: int
    validation_passed: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    task_type: Optional[str] = None

    def to_dict(self):
        report = {
            "sourceFile": self.source_file,
            "outputFile": self.output_file,
            "sourceFormat": self.source_format,
            "totalRequests": self.total_requests,
            "requestCount": self.total_requests,
            "validationPassed": self.validation_passed,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }
        if self.task_type is not None:
            report["taskType"] = self.task_type
        return report


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: List[str]
    request_count: int
    warnings: List[str] = field(default_factory=list)

    def to_dict(self):
        return {
            "valid": self.valid,
            "errors": list(self.errors),
            "requestCount": self.request_count,
            "warnings": list(self.warnings),
        }


def _to_plain(obj):
    """Turn an SDK pydantic model (or a dict) into plain JSON-able data."""
    if obj is None:
        return None
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json", exclude_none=True)
    if isinstance(obj, dict):
        return obj
    raise TypeError(f"Cannot convert {type(obj).__name__} to a dictionary")


def _pick(mapping, *keys):
    """Return the first present key among snake_case / camelCase spellings."""
    for key in keys:
        if mapping.get(key) is not None:
            return mapping[key]
    return None


@dataclass
class BatchJob:
    """
    Read-only snapshot of a remote batch job.

    The remote service owns the job; a snapshot is never updated in place.
    Fetch a new one with `check_batch_status` instead.
    """
    name: str
    state: JobState
    display_name: Optional[str] = None
    model: Optional[str] = None
    dest_file_name: Optional[str] = None
    inlined_responses: Optional[List[Dict[str, Any]]] = None
    stats: Optional[Dict[str, int]] = None
    error: Optional[Any] = None
    create_time: Optional[str] = None
    update_time: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def has_results(self) -> bool:
        return self.inlined_responses is not None or bool(self.dest_file_name)

    @classmethod
    def from_remote(cls, job):
        """
        Build a snapshot from a `google.genai` BatchJob (or its dict dump).
        """
        data = _to_plain(job)
        dest = _pick(data, "dest") or {}
        inlined = _pick(
            dest,
            "inlined_responses", "inlinedResponses",
            "inlined_embed_content_responses", "inlinedEmbedContentResponses",
        )
        return cls(
            name=data["name"],
            state=normalize_job_state(_pick(data, "state")),
            display_name=_pick(data, "display_name", "displayName"),
            model=_pick(data, "model"),
            dest_file_name=_pick(dest, "file_name", "fileName"),
            inlined_responses=list(inlined) if inlined is not None else None,
            stats=_extract_stats(data),
            error=_pick(data, "error"),
            create_time=_pick(data, "create_time", "createTime"),
            update_time=_pick(data, "update_time", "updateTime"),
        )

    def to_dict(self):
        return {
            "batchName": self.name,
            "displayName": self.display_name,
            "state": self.state.value,
            "isComplete": self.is_terminal,
            "model": self.model,
            "stats": self.stats,
            "error": self.error,
            "createTime": self.create_time,
            "updateTime": self.update_time,
            "hasInlineResults": self.inlined_responses is not None,
            "resultsFile": self.dest_file_name,
        }


def _extract_stats(data):
    """
    Request counters come back as `batch_stats` (Gemini API) or
    `completion_stats` (Vertex AI) depending on the backend.
    """
    batch_stats = _pick(data, "batch_stats", "batchStats")
    if batch_stats:
        success = int(_pick(batch_stats, "successful_request_count", "successfulRequestCount") or 0)
        failed = int(_pick(batch_stats, "failed_request_count", "failedRequestCount") or 0)
        total = _pick(batch_stats, "request_count", "requestCount")
        return {
            "successCount": success,
            "failCount": failed,
            "totalCount": int(total) if total is not None else success + failed,
        }
    completion_stats = _pick(data, "completion_stats", "completionStats")
    if completion_stats:
        success = int(_pick(completion_stats, "successful_count", "successfulCount") or 0)
        failed = int(_pick(completion_stats, "failed_count", "failedCount") or 0)
        incomplete = int(_pick(completion_stats, "incomplete_count", "incompleteCount") or 0)
        return {
            "successCount": success,
            "failCount": failed,
            "totalCount": success + failed + incomplete,
        }
    return None


@dataclass(frozen=True)
class BatchResults:
    results: List[Any]
    file_path: str

    def to_dict(self):
        return {
            "results": self.results,
            "resultCount": len(self.results),
            "filePath": self.file_path,
        }


@dataclass(frozen=True)
class TaskTypeRecommendation:
    selected_task_type: str
    confidence: float
    reasoning: str

    def to_dict(self):
        return {
            "selectedTaskType": self.selected_task_type,
            "confidence": self.confidence,
            "reasoning": self.reasoning,
        }
