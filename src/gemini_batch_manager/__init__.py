"""
Gemini Batch Manager - Batch content generation and embeddings with the Gemini Batch API

A toolkit to turn local data files into Gemini batch jobs and collect their
results, usable as a library or from the command line.

Key Features:
    - CSV, JSON, TXT, MD and JSONL ingestion into batch request files
    - Validation of request files before upload
    - Content generation and embeddings batch jobs, file-based or inline
    - Status polling, result download, cancellation and deletion
    - Embedding task type recommendation

Example Usage:

    Step by step:
        import gemini_batch_manager as gbm

        report = gbm.batching.files.ingest_content('./prompts.csv', text_field='prompt')

        client = gbm.utils.clients.create_gemini_client()
        uploaded = gbm.batching.jobs.upload_file(client, report.output_file)
        job = gbm.batching.jobs.create_batch_job(client, 'gemini-2.5-flash', file_name=uploaded['name'])
        job = gbm.batching.jobs.poll_batch_until_complete(client, job.name, interval_seconds=60)
        results = gbm.batching.jobs.download_batch_results(client, job, './results/')

    High-Level Interface:
        manager = gbm.GeminiBatchManager(
            client=gbm.utils.clients.create_gemini_client(),
            output_location='./results/',
        )
        outcome = manager.process_content('./prompts.csv', model='gemini-2.5-flash')
        outcome = manager.process_embeddings('./docs.txt', context='semantic search over docs')

    CLI Usage:
        $ geminibm ingest-content prompts.csv --text-field prompt
        $ geminibm process prompts.csv --model gemini-2.5-flash
        $ geminibm status batches/abc123 --auto-poll

Environment Setup:
    Required environment variables:
    - GEMINI_API_KEY (or GOOGLE_API_KEY)

    These can be set via .env files in:
    - Current working directory (.env, .env.local)
    - Project root directory
"""

__version__ = "0.1.0"

# Load environment on package import
from .core.utils.environment import setup_environment
setup_environment()

from . import core
batching = core.batching
utils = core.utils
errors = core.errors
GeminiBatchManager = core.GeminiBatchManager

__all__ = [
    '__version__',
    'batching',            # gbm.batching.*
    'utils',               # gbm.utils.*
    'errors',              # gbm.errors.*
    'GeminiBatchManager',  # gbm.GeminiBatchManager()
]

# Clean up namespace
del setup_environment, core
