"""
Batch processing operations for Gemini Batch Manager.

Submodules:
    files:      Source format detection, JSONL conversion and ingestion
    validation: Structural validation of request JSONL files
    jobs:       Upload, job creation, status polling, result download
    parse:      Unwrapping of inline and file-based batch results
    tasks:      Embedding task types and task type recommendation
    models:     Data records shared by the stages above
    manager:    High-level workflow orchestration

Example Usage:
    import gemini_batch_manager as gbm

    # Ingestion
    report = gbm.batching.files.ingest_content('./prompts.csv')

    # Job management
    uploaded = gbm.batching.jobs.upload_file(client, report.output_file)
    job = gbm.batching.jobs.create_batch_job(client, 'gemini-2.5-flash', file_name=uploaded['name'])
    job = gbm.batching.jobs.poll_batch_until_complete(client, job.name)
    results = gbm.batching.jobs.download_batch_results(client, job, './results/')
"""

from . import models
from . import tasks
from . import validation
from . import files
from . import parse
from . import jobs
from . import manager

__all__ = [
    'models',      # gbm.batching.models.*
    'tasks',       # gbm.batching.tasks.*
    'validation',  # gbm.batching.validation.*
    'files',       # gbm.batching.files.*
    'parse',       # gbm.batching.parse.*
    'jobs',        # gbm.batching.jobs.*
    'manager',     # gbm.batching.manager.*
]
