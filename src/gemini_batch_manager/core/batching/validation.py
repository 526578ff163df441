# -*- coding: utf-8 -*-

"""
Structural validation of batch request JSONL files.

One routine serves both job kinds: a record is accepted when its `request`
holds either `contents` (content generation) or `content` (embeddings).
Completeness checks that only apply to one kind, such as the presence of
`task_type` on embedding records, belong to the ingestion step.
"""

import json
import logging
from collections import Counter

from ..utils.misc import mask_path, read_non_blank_lines
from .models import RequestKind, ValidationResult


def detect_record_kind(record):
    """
    Return the RequestKind a parsed JSONL record matches, or None.

    `contents` (plural) marks a content request; `content` (singular) marks
    an embedding request.
    """
    if not isinstance(record, dict):
        return None
    request = record.get('request')
    if not isinstance(request, dict):
        return None
    if 'contents' in request:
        return RequestKind.CONTENT
    if 'content' in request:
        return RequestKind.EMBEDDING
    return None


def validate_jsonl_lines(lines):
    """
    Validate already loaded non-blank JSONL lines.

    Every line is checked, errors are accumulated and reported with their
    1-based line number. Records of both kinds may coexist in one file.
    Duplicate keys are reported as warnings only.

    Returns:
        ValidationResult
    """
    errors = []
    keys = Counter()

    for index, line in enumerate(lines, start=1):
        try:
            record = json.loads(line)
        except json.JSONDecodeError:
            errors.append(f"Line {index}: invalid JSON")
            continue

        if detect_record_kind(record) is None:
            errors.append(f"Line {index}: missing required 'request.contents' "
                          "or 'request.content' field")
            continue

        key = record.get('key')
        if isinstance(key, str):
            keys[key] += 1

    warnings = [
        f"Duplicate key '{key}' appears {count} times"
        for key, count in keys.items() if count > 1
    ]

    return ValidationResult(
        valid=not errors,
        errors=errors,
        request_count=len(lines),
        warnings=warnings,
    )


def validate_jsonl(path):
    """
    Validate a batch request JSONL file.

    Args:
        path (str): Path to the JSONL file.

    Returns:
        ValidationResult: `valid`, `errors`, `request_count` and `warnings`.
    """
    lines = read_non_blank_lines(path)
    result = validate_jsonl_lines(lines)

    if result.valid:
        logging.info(f"Validated {result.request_count} requests in {mask_path(path)}")
    else:
        logging.warning(f"{len(result.errors)} invalid lines out of "
                        f"{result.request_count} in {mask_path(path)}")
    for warning in result.warnings:
        logging.warning(warning)

    return result
