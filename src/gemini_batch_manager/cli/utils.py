# -*- coding: utf-8 -*-

import json
import logging
from functools import wraps
import click
import yaml

from ..core.batching.manager import GeminiBatchManager
from ..core.errors import GeminiBatchError
from ..core.utils.clients import create_gemini_client
from ..core.utils.environment import validate_required_env_vars
from ..core.utils.misc import mask_path, read_json
from ..core.utils.settings import Settings


def setup_logging(verbose=False, quiet=False):
    """Configure logging for CLI execution."""
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True  # Override any existing configuration
    )

    # Reduce noise from external libraries in non-verbose mode
    if not verbose:
        logging.getLogger("urllib3").setLevel(logging.WARNING)
        logging.getLogger("google_genai").setLevel(logging.WARNING)
        logging.getLogger("httpx").setLevel(logging.WARNING)

    if verbose:
        logger = logging.getLogger(__name__)
        logger.debug("CLI logging setup completed")


def _validate_positive_number_callback(ctx, param, value):
    """Validate that the provided value is a positive number."""
    if value is not None and value <= 0:
        raise click.BadParameter("Value must be a positive number.")
    return value


def _echo_json(data):
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


def _handle_errors(func):
    """Log package errors and exit with status 1 instead of a traceback."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except GeminiBatchError as e:
            logging.error(str(e))
            for error in getattr(e, 'errors', None) or []:
                logging.error(f"  {error}")
            raise SystemExit(1)
        except (FileNotFoundError, ValueError) as e:
            logging.error(str(e))
            raise SystemExit(1)
    return wrapper


def _get_manager(ctx) -> GeminiBatchManager:
    """Create the Gemini client on first use and wrap it in a manager."""
    if ctx.obj.get('manager') is not None:
        return ctx.obj['manager']

    missing_vars = validate_required_env_vars()
    if missing_vars:
        logging.error(f"Missing required environment variables: {missing_vars}")
        logging.info("Please set GEMINI_API_KEY in your environment or in a "
                     ".env file at the repo root directory:")
        logging.info("  GEMINI_API_KEY=your_key_here")
        raise SystemExit(1)

    try:
        client = create_gemini_client()
    except ValueError as e:
        logging.error(f"Error creating Gemini client: {e}")
        raise SystemExit(1)

    settings: Settings = ctx.obj['settings']
    ctx.obj['manager'] = GeminiBatchManager(
        client=client,
        settings=settings,
        show_progress=not ctx.obj.get('quiet', False)
    )
    return ctx.obj['manager']


def _generation_config(temperature=None, max_output_tokens=None):
    config = {}
    if temperature is not None:
        config['temperature'] = temperature
    if max_output_tokens is not None:
        config['max_output_tokens'] = max_output_tokens
    return config or None


def _read_inline_requests(path):
    """Inline requests are given as a JSON array file."""
    if path is None:
        return None
    requests = read_json(path)
    if not isinstance(requests, list):
        raise click.BadParameter(f"{mask_path(path)} must contain a JSON array.")
    return requests


def _read_sample_texts(path):
    if path is None:
        return None
    with open(path, 'r', encoding='utf-8') as f:
        return [line.strip() for line in f if line.strip()]


def _parse_setting_assignments(assignments):
    """Turn `key=value` strings into a dict, parsing values as YAML scalars."""
    updates = {}
    for assignment in assignments:
        if '=' not in assignment:
            raise click.BadParameter(f"Expected key=value, got '{assignment}'")
        key, value = assignment.split('=', 1)
        updates[key.strip()] = yaml.safe_load(value)
    return updates


def _summarize_results(outcome, show_results=False):
    """Drop the (possibly large) results list from a printed report."""
    if show_results:
        return outcome
    return {k: v for k, v in outcome.items() if k != 'results'}
