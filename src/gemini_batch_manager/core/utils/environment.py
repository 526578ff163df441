# -*- coding: utf-8 -*-

"""
Environment configuration management.
"""

import logging
from pathlib import Path
from typing import Optional
import dotenv

from .clients import API_KEY_ENV_VARS, get_api_key_from_env


def load_environment_variables(env_file: Optional[str] = None, verbose: bool = False) -> bool:
    """
    Load environment variables from a .env file.

    Args:
        env_file: Specific .env file path. If None, searches the current
            directory and the project root.
        verbose: Whether to log environment loading details.

    Returns:
        True if a .env file was found and loaded, False otherwise.
    """
    if env_file:
        env_path = Path(env_file)
        if env_path.exists():
            dotenv.load_dotenv(env_path)
            if verbose:
                logging.debug(f"Loaded environment from: {env_path}")
            return True
        if verbose:
            logging.warning(f"Specified .env file not found: {env_path}")
        return False

    search_paths = [
        Path.cwd() / '.env.local',
        Path.cwd() / '.env',
    ]

    # src/gemini_batch_manager/core/utils -> project root
    package_root = Path(__file__).resolve().parents[4]
    search_paths.extend([
        package_root / '.env.local',
        package_root / '.env',
    ])

    for env_path in search_paths:
        if env_path.exists():
            dotenv.load_dotenv(env_path)
            if verbose:
                logging.debug(f"Loaded environment from: {env_path}")
            return True

    if verbose:
        logging.debug("No .env file found in search paths")
    return False


def validate_required_env_vars() -> list:
    """
    Check that a Gemini API key is available.

    Returns:
        List of missing environment variables (empty if a key is set)
    """
    if get_api_key_from_env():
        return []
    return [" or ".join(API_KEY_ENV_VARS)]


def setup_environment(verbose: bool = False, env_file: Optional[str] = None) -> bool:
    """
    Set up environment for the package.

    Args:
        verbose: Whether to log environment setup details
        env_file: Optional specific .env file to load

    Returns:
        True, since a .env file is optional
    """
    env_loaded = load_environment_variables(env_file, verbose)

    if verbose and not env_loaded:
        logging.debug("No .env file loaded. Relying on system environment variables.")
        logging.debug("Expected .env file locations:")
        logging.debug("  - ./.env (current directory)")
        logging.debug("  - ./.env.local (current directory)")
        logging.debug("  - <project_root>/.env (project root directory)")
        logging.debug("  - <project_root>/.env.local (project root directory)")

    return True
