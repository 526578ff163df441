# -*- coding: utf-8 -*-

import click
import logging
from dataclasses import replace

from ..core.batching.files import ingest_content as _ingest_content
from ..core.batching.files import ingest_embeddings as _ingest_embeddings
from ..core.batching.tasks import EmbeddingTaskType, query_task_type as _query_task_type
from ..core.batching.validation import validate_jsonl
from ..core.utils.misc import mask_path
from ..core.utils.settings import get_settings_path, load_settings, save_settings
from .utils import (
    setup_logging,
    _validate_positive_number_callback,
    _echo_json,
    _handle_errors,
    _get_manager,
    _generation_config,
    _read_inline_requests,
    _read_sample_texts,
    _parse_setting_assignments,
    _summarize_results,
)


TASK_TYPE_CHOICE = click.Choice([t.value for t in EmbeddingTaskType], case_sensitive=False)


def _generation_options(func):
    func = click.option(
        '--max-output-tokens', type=int, default=None,
        callback=_validate_positive_number_callback,
        help='Maximum number of output tokens per request.'
    )(func)
    func = click.option(
        '--temperature', type=float, default=None,
        help='Sampling temperature applied to every request.'
    )(func)
    return func


def _polling_options(func):
    func = click.option(
        '--max-wait', type=float, default=None,
        callback=_validate_positive_number_callback,
        help='Maximum seconds to wait for the job. Defaults to the configured value (24h).'
    )(func)
    func = click.option(
        '--poll-interval', type=float, default=None,
        callback=_validate_positive_number_callback,
        help='Seconds between status checks. Defaults to the configured value (30s).'
    )(func)
    return func


@click.group()
@click.option(
    '-v', '--verbose', is_flag=True,
    help='Enable verbose (DEBUG) logging'
)
@click.option(
    '-q', '--quiet', is_flag=True,
    help='Only show warnings and errors'
)
@click.option(
    '--settings-file', type=click.Path(dir_okay=False), default=None,
    help='Settings YAML file. Defaults to the user config directory.'
)
@click.pass_context
def cli(ctx, verbose, quiet, settings_file):
    """
    Gemini Batch Manager CLI - Turn local data files into Gemini Batch API
    jobs for content generation or embeddings, and collect their results.

    \b
    Ensure you have a Gemini API key in your environment variables:
    - GEMINI_API_KEY (or GOOGLE_API_KEY)
    """
    setup_logging(verbose=verbose, quiet=quiet)

    ctx.ensure_object(dict)
    ctx.obj['quiet'] = quiet
    ctx.obj['settings_file'] = settings_file
    try:
        ctx.obj['settings'] = load_settings(settings_file)
    except (ValueError, TypeError) as e:
        logging.error(f"Invalid settings file: {e}")
        raise SystemExit(1)


#=======================================================================
# Ingestion
#=======================================================================

@cli.command()
@click.argument('input_file', type=click.Path(exists=True, dir_okay=False))
@click.option(
    '--output-file', type=click.Path(dir_okay=False), default=None,
    help='Output JSONL path. Default is <input stem>_batch.jsonl next to the input.'
)
@click.option(
    '--text-field', type=str, default=None,
    help='CSV column or JSON field holding the prompt text.'
)
@_generation_options
@click.pass_context
@_handle_errors
def ingest_content(ctx, input_file, output_file, text_field, temperature, max_output_tokens):
    """Convert INPUT_FILE into a content generation request file."""
    report = _ingest_content(
        input_file,
        output_file=output_file,
        text_field=text_field,
        generation_config=_generation_config(temperature, max_output_tokens),
        show_progress=not ctx.obj['quiet']
    )
    _echo_json(report.to_dict())
    if not report.validation_passed:
        raise SystemExit(1)


@cli.command()
@click.argument('input_file', type=click.Path(exists=True, dir_okay=False))
@click.option(
    '--task-type', type=TASK_TYPE_CHOICE, required=True,
    help='Embedding task type. Use query-task-type for a recommendation.'
)
@click.option(
    '--output-file', type=click.Path(dir_okay=False), default=None,
    help='Output JSONL path. Default is <input stem>_embeddings.jsonl next to the input.'
)
@click.option(
    '--text-field', type=str, default=None,
    help='CSV column or JSON field holding the text to embed.'
)
@click.pass_context
@_handle_errors
def ingest_embeddings(ctx, input_file, task_type, output_file, text_field):
    """Convert INPUT_FILE into an embeddings request file."""
    report = _ingest_embeddings(
        input_file,
        task_type,
        output_file=output_file,
        text_field=text_field,
        show_progress=not ctx.obj['quiet']
    )
    _echo_json(report.to_dict())
    if not report.validation_passed:
        raise SystemExit(1)


@cli.command()
@click.argument('jsonl_file', type=click.Path(exists=True, dir_okay=False))
def validate(jsonl_file):
    """Validate a request JSONL file without uploading it."""
    result = validate_jsonl(jsonl_file)
    _echo_json(result.to_dict())
    if not result.valid:
        raise SystemExit(1)


#=======================================================================
# Job Management
#=======================================================================

@cli.command()
@click.argument('file_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--display-name', type=str, default=None, help='Display name of the uploaded file.')
@click.pass_context
@_handle_errors
def upload(ctx, file_path, display_name):
    """Upload FILE_PATH to the Gemini File API."""
    manager = _get_manager(ctx)
    _echo_json(manager.upload(file_path, display_name=display_name))


@cli.command()
@click.option('--model', type=str, default=None, help='Model name. Defaults to the configured content model.')
@click.option('--input-file-name', type=str, default=None, help='Uploaded file name (files/...) or URI.')
@click.option(
    '--inline-requests-file', type=click.Path(exists=True, dir_okay=False), default=None,
    help='JSON file with an array of requests to send inline.'
)
@click.option('--display-name', type=str, default=None, help='Display name of the job.')
@_generation_options
@click.pass_context
@_handle_errors
def create(ctx, model, input_file_name, inline_requests_file, display_name, temperature, max_output_tokens):
    """Create a content generation batch job."""
    manager = _get_manager(ctx)
    job = manager.create_job(
        model=model,
        input_file_name=input_file_name,
        inline_requests=_read_inline_requests(inline_requests_file),
        display_name=display_name,
        generation_config=_generation_config(temperature, max_output_tokens)
    )
    _echo_json(job.to_dict())


@cli.command()
@click.option('--task-type', type=TASK_TYPE_CHOICE, required=True, help='Embedding task type.')
@click.option('--model', type=str, default=None, help='Model name. Defaults to the configured embedding model.')
@click.option('--input-file-name', type=str, default=None, help='Uploaded file name (files/...) or URI.')
@click.option(
    '--inline-requests-file', type=click.Path(exists=True, dir_okay=False), default=None,
    help='JSON file with an array of texts (or requests) to embed inline.'
)
@click.option('--display-name', type=str, default=None, help='Display name of the job.')
@click.pass_context
@_handle_errors
def create_embeddings(ctx, task_type, model, input_file_name, inline_requests_file, display_name):
    """Create an embeddings batch job."""
    manager = _get_manager(ctx)
    job = manager.create_embeddings_job(
        task_type,
        model=model,
        input_file_name=input_file_name,
        inline_requests=_read_inline_requests(inline_requests_file),
        display_name=display_name
    )
    _echo_json(job.to_dict())


@cli.command()
@click.argument('batch_name', type=str)
@click.option('--auto-poll', is_flag=True, default=False, help='Wait until the job finishes.')
@_polling_options
@click.pass_context
@_handle_errors
def status(ctx, batch_name, auto_poll, poll_interval, max_wait):
    """Show the status of BATCH_NAME."""
    manager = _get_manager(ctx)
    job = manager.get_status(
        batch_name,
        auto_poll=auto_poll,
        poll_interval_seconds=poll_interval,
        max_wait_seconds=max_wait
    )
    _echo_json(job.to_dict())


@cli.command()
@click.argument('batch_name', type=str)
@click.option(
    '--output-location', type=click.Path(file_okay=False), default=None,
    help='Folder for the results file. Defaults to the configured output location.'
)
@click.option('--show-results', is_flag=True, default=False, help='Print every result.')
@click.pass_context
@_handle_errors
def download(ctx, batch_name, output_location, show_results):
    """Download the results of BATCH_NAME."""
    manager = _get_manager(ctx)
    results = manager.download_results(batch_name, output_location)
    _echo_json(_summarize_results(results.to_dict(), show_results))


@cli.command()
@click.argument('batch_name', type=str)
@click.pass_context
@_handle_errors
def cancel(ctx, batch_name):
    """Cancel BATCH_NAME."""
    manager = _get_manager(ctx)
    job = manager.cancel(batch_name)
    _echo_json({'batchName': batch_name, 'state': job.state.value, 'cancelled': True})


@cli.command()
@click.argument('batch_name', type=str)
@click.option('--force', is_flag=True, default=False, help='Skip the confirmation prompt.')
@click.pass_context
@_handle_errors
def delete(ctx, batch_name, force):
    """Delete BATCH_NAME. Results not downloaded yet are lost."""
    if not force:
        click.confirm(f"Delete batch job {batch_name}?", abort=True)
    manager = _get_manager(ctx)
    job = manager.delete(batch_name)
    _echo_json({'batchName': batch_name, 'deleted': True, 'deletedJob': job.to_dict()})


#=======================================================================
# Workflows
#=======================================================================

@cli.command()
@click.option('--context', type=str, default=None, help='What the embeddings will be used for.')
@click.option(
    '--sample-file', type=click.Path(exists=True, dir_okay=False), default=None,
    help='Text file with sample content, one item per line.'
)
def query_task_type(context, sample_file):
    """Recommend an embedding task type and describe all of them."""
    _echo_json(_query_task_type(context, _read_sample_texts(sample_file)))


@cli.command()
@click.argument('input_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--model', type=str, default=None, help='Model name. Defaults to the configured content model.')
@click.option(
    '--output-location', type=click.Path(file_okay=False), default=None,
    help='Folder for the results file.'
)
@click.option('--text-field', type=str, default=None, help='CSV column or JSON field holding the prompt text.')
@click.option('--display-name', type=str, default=None, help='Display name of the job.')
@click.option('--show-results', is_flag=True, default=False, help='Print every result.')
@_generation_options
@_polling_options
@click.pass_context
@_handle_errors
def process(ctx, input_file, model, output_location, text_field, display_name, show_results,
            temperature, max_output_tokens, poll_interval, max_wait):
    """Run content generation for INPUT_FILE end to end."""
    manager = _get_manager(ctx)
    outcome = manager.process_content(
        input_file,
        model=model,
        output_location=output_location,
        poll_interval_seconds=poll_interval,
        max_wait_seconds=max_wait,
        generation_config=_generation_config(temperature, max_output_tokens),
        text_field=text_field,
        display_name=display_name
    )
    _echo_json(_summarize_results(outcome, show_results))


@cli.command()
@click.argument('input_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--task-type', type=TASK_TYPE_CHOICE, default=None, help='Embedding task type. Recommended from --context when omitted.')
@click.option('--context', type=str, default=None, help='What the embeddings will be used for.')
@click.option('--model', type=str, default=None, help='Model name. Defaults to the configured embedding model.')
@click.option(
    '--output-location', type=click.Path(file_okay=False), default=None,
    help='Folder for the results file.'
)
@click.option('--text-field', type=str, default=None, help='CSV column or JSON field holding the text to embed.')
@click.option('--display-name', type=str, default=None, help='Display name of the job.')
@click.option('--show-results', is_flag=True, default=False, help='Print every result.')
@_polling_options
@click.pass_context
@_handle_errors
def process_embeddings(ctx, input_file, task_type, context, model, output_location, text_field,
                       display_name, show_results, poll_interval, max_wait):
    """Run embeddings for INPUT_FILE end to end."""
    manager = _get_manager(ctx)
    outcome = manager.process_embeddings(
        input_file,
        task_type=task_type,
        context=context,
        model=model,
        output_location=output_location,
        poll_interval_seconds=poll_interval,
        max_wait_seconds=max_wait,
        text_field=text_field,
        display_name=display_name
    )
    _echo_json(_summarize_results(outcome, show_results))


#=======================================================================
# Configuration
#=======================================================================

@cli.command()
@click.option(
    '--set', 'assignments', multiple=True, metavar='KEY=VALUE',
    help='Update a setting, e.g. --set content_model=gemini-2.5-pro. Repeatable.'
)
@click.pass_context
def config(ctx, assignments):
    """Show the current settings, or update them with --set."""
    settings = ctx.obj['settings']
    path = ctx.obj['settings_file'] or get_settings_path()

    if assignments:
        updates = _parse_setting_assignments(assignments)
        unknown = set(updates) - set(settings.to_dict())
        if unknown:
            raise click.BadParameter(f"Unknown settings: {sorted(unknown)}")
        try:
            settings = replace(settings, **updates)
        except (ValueError, TypeError) as e:
            logging.error(f"Invalid setting: {e}")
            raise SystemExit(1)
        save_settings(settings, path)

    _echo_json({'settingsFile': mask_path(path), **settings.to_dict()})
