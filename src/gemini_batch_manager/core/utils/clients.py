# -*- coding: utf-8 -*-

import os
import logging

from google import genai


API_KEY_ENV_VARS = ('GEMINI_API_KEY', 'GOOGLE_API_KEY')


def get_api_key_from_env():
    """Return the first Gemini API key found in the environment, or None."""
    for var in API_KEY_ENV_VARS:
        value = os.getenv(var)
        if value:
            return value
    return None


def create_gemini_client(api_key=None):
    """
    Create a Gemini API client for batch and file operations.

    Args:
        api_key (str): The Gemini API key. If not provided, it will be fetched
            from the GEMINI_API_KEY (or GOOGLE_API_KEY) environment variable.
    """
    if api_key is None:
        api_key = get_api_key_from_env()
    if api_key is None:
        raise ValueError("No Gemini API key provided or found in environment.")

    client = genai.Client(api_key=api_key)
    logging.info("Gemini client created successfully.")
    return client
