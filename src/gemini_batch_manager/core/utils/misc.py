# -*- coding: utf-8 -*-

import os
import json
import logging
import yaml
from datetime import datetime
from pathlib import Path


#=======================================================================
# JSON Lines Utilities
#=======================================================================

def write_jsonl_lines(lines, path):
    """
    Write already serialized JSON strings to a JSON Lines file.
    Each string is written as a separate line and the file is overwritten.

    Args:
        lines (list[str]): Serialized JSON records.
        path (str): Path to the output file.
    """
    with open(path, 'w', encoding='utf-8') as f:
        for line in lines:
            f.write(line + '\n')
    return


def read_non_blank_lines(path):
    """
    Read a text file and return its non-blank lines, in order.

    Args:
        path (str): Path to the input file.

    Returns:
        list: Lines with surrounding line breaks removed.
    """
    with open(path, 'r', encoding='utf-8') as f:
        return [line.rstrip('\r\n') for line in f if line.strip()]


def read_json(path, encoding="utf-8"):
    """Read a JSON file."""
    with open(path, 'r', encoding=encoding) as f:
        return json.load(f)


def write_json(data, path, indent=2, encoding="utf-8"):
    """
    Write data to a pretty-printed JSON file.

    Args:
        data (dict or list): Data to write.
        path (str): Destination file path.
        indent (int): Indentation level for formatting.
    """
    with open(path, 'w', encoding=encoding) as f:
        json.dump(data, f, indent=indent, ensure_ascii=False)


#=======================================================================
# YAML Utilities
#=======================================================================

def read_yaml(path, encoding="utf-8"):
    """Read a YAML file. An empty file reads as None."""
    with open(path, 'r', encoding=encoding) as f:
        return yaml.safe_load(f)


def write_yaml(data, path, encoding="utf-8"):
    """Write a dictionary to a YAML file, keeping key order."""
    with open(path, 'w', encoding=encoding) as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)


#=======================================================================
# Path Utilities
#=======================================================================

def mask_path(path, base_dir=None):
    """
    Masks or simplifies a path for logging.

    Args:
        path (str): The full path to mask.
        base_dir (str, optional): The base directory to make the path relative to.

    Returns:
        str: The masked or simplified path.
    """
    path = Path(path)

    # Use base_dir if provided, otherwise fallback to PROJECT_DIR from environment
    if base_dir is None:
        base_dir = os.getenv('PROJECT_DIR')

    if base_dir:
        try:
            return str(path.relative_to(Path(base_dir)))
        except ValueError:
            pass  # Not under base_dir

    # Replace home directory with "~"
    try:
        return f"~/{path.relative_to(Path.home())}"
    except ValueError:
        return str(path)


def assert_required_path(path, description="Path"):
    """
    Ensures that a required file or directory exists.

    Raises:
        FileNotFoundError: If the path does not exist.
    """
    if not os.path.exists(path):
        logging.error(f"{description} not found at: {mask_path(path)}")
        raise FileNotFoundError(f"{description} not found: {path}")


def ensure_output_path(path, description="Output folder"):
    """
    Checks that an output directory exists and creates it otherwise.

    Args:
        path (str): Directory path.
        description (str): Description of the resource (for logging).
    """
    if not os.path.exists(path):
        logging.info(f"{description} does not exist. Creating it at: {mask_path(path)}")
        os.makedirs(path, exist_ok=True)


def timestamped_path(folder, prefix, suffix):
    """
    Build `<folder>/<prefix>_<timestamp><suffix>` with a millisecond timestamp.

    Distinct downloads into the same folder get distinct names. Pre-existing
    files are not checked.
    """
    stamp = int(datetime.now().timestamp() * 1000)
    return Path(folder) / f"{prefix}_{stamp}{suffix}"
