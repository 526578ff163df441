"""
Command-line interface for Gemini Batch Manager.

Command Categories:
    Ingestion:
        - ingest-content: Convert a source file into content requests
        - ingest-embeddings: Convert a source file into embedding requests
        - validate: Check a request JSONL file

    Job Management:
        - upload: Upload a request file to the File API
        - create / create-embeddings: Create batch jobs
        - status: Check (or wait for) a batch job
        - cancel / delete: Stop or remove a batch job

    Results:
        - download: Download the results of a finished job

    Workflows:
        - process: Content generation from input file to results
        - process-embeddings: Embeddings from input file to results
        - query-task-type: Recommend an embedding task type

    Configuration:
        - config: Show or update user settings

Environment Requirements:
    - GEMINI_API_KEY (or GOOGLE_API_KEY)

Example Workflow:
    $ geminibm ingest-content ./prompts.csv --text-field prompt
    $ geminibm upload ./prompts_batch.jsonl
    $ geminibm create --input-file-name files/abc123 --model gemini-2.5-flash
    $ geminibm status batches/xyz789 --auto-poll --poll-interval 60
    $ geminibm download batches/xyz789 --output-location ./results/

Or all at once:
    $ geminibm process ./prompts.csv --text-field prompt
"""

from .cli import cli

__all__ = [
    'cli',  # Main CLI interface (Click command group)
]
