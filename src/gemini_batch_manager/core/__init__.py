"""
Core functionality for Gemini Batch Manager.

Architecture:
    batching/   - Batch processing operations
      ├── files/      - Format detection, conversion, ingestion
      ├── validation/ - Request file validation
      ├── jobs/       - Job lifecycle (upload, create, poll, download)
      ├── parse/      - Result unwrapping
      ├── tasks/      - Embedding task types and recommendation
      └── manager/    - High-level workflow orchestration

    utils/      - Shared utilities and infrastructure
      ├── clients/     - Gemini API client creation
      ├── datasource/  - Text extraction from structured sources
      ├── settings/    - User settings
      ├── misc/        - General utilities (internal)
      └── environment/ - Environment setup (internal)

    errors      - Exception hierarchy shared by every stage
"""

from . import errors
from . import batching
from . import utils

from .batching.manager import GeminiBatchManager

__all__ = [
    'errors',
    'batching',
    'utils',
    'GeminiBatchManager',
]
