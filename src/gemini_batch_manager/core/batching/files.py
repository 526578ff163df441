# -*- coding: utf-8 -*-

import os
import json
import logging
from pathlib import Path
from typing import List, Optional

from tqdm.auto import tqdm

from ..errors import InvalidParamsError
from ..utils.datasource import read_text_column_csv, read_text_field_json
from ..utils.misc import mask_path, read_non_blank_lines, write_jsonl_lines
from .models import IngestionReport, RequestKind, SourceDescriptor, SourceFormat
from .tasks import parse_task_type
from .validation import detect_record_kind, validate_jsonl


EXTENSION_TO_FORMAT = {
    '.jsonl': SourceFormat.JSONL,
    '.ndjson': SourceFormat.JSONL,
    '.json': SourceFormat.JSON,
    '.csv': SourceFormat.CSV,
    '.txt': SourceFormat.TEXT,
    '.md': SourceFormat.TEXT,
    '.xml': SourceFormat.XML,
}

CONVERTIBLE_FORMATS = {
    SourceFormat.JSONL,
    SourceFormat.JSON,
    SourceFormat.CSV,
    SourceFormat.TEXT,
}


#=============================================================================
# Format Detection
#=============================================================================

def detect_source_format(path) -> SourceDescriptor:
    """
    Classify a source file by its extension and describe its structure.

    A `.json` file that fails to parse is still classified as json, with
    complexity "complex", so that conversion can report the parse error.

    Args:
        path (str): Path to the source file.

    Returns:
        SourceDescriptor

    Only text formats are read. xml and unknown files are classified
    without decoding their content, so binary files are accepted.

    Raises:
        OSError: If the file does not exist or cannot be read.
    """
    path = str(path)
    source_format = EXTENSION_TO_FORMAT.get(Path(path).suffix.lower(), SourceFormat.UNKNOWN)

    structure = {}
    complexity = "simple"

    if source_format not in CONVERTIBLE_FORMATS:
        os.stat(path)
        return SourceDescriptor(
            path=path,
            format=source_format,
            structure=structure,
            complexity="complex" if source_format == SourceFormat.XML else complexity,
        )

    with open(path, 'r', encoding='utf-8') as f:
        content = f.read()

    if source_format == SourceFormat.JSONL:
        structure = {'lineCount': sum(1 for line in content.splitlines() if line.strip())}
    elif source_format == SourceFormat.JSON:
        try:
            parsed = json.loads(content)
            if isinstance(parsed, list):
                structure = {'isArray': True, 'length': len(parsed)}
            elif isinstance(parsed, dict):
                structure = {'isArray': False, 'keys': list(parsed.keys())}
            else:
                structure = {'isArray': False}
        except json.JSONDecodeError:
            complexity = "complex"
    elif source_format == SourceFormat.CSV:
        structure = {'rowCount': len(content.splitlines()), 'hasHeader': True}
    elif source_format == SourceFormat.TEXT:
        structure = {'lineCount': len(content.splitlines())}

    return SourceDescriptor(
        path=path,
        format=source_format,
        structure=structure,
        complexity=complexity,
    )


#=============================================================================
# Request Records
#=============================================================================

def build_content_record(key, text, generation_config=None):
    """
    Build one content generation request line:
    {"key": ..., "request": {"contents": [{"parts": [{"text": ...}]}]}}
    """
    request = {"contents": [{"parts": [{"text": text}]}]}
    if generation_config:
        request["generation_config"] = dict(generation_config)
    return {"key": key, "request": request}


def build_embedding_record(key, text, task_type):
    """
    Build one embedding request line:
    {"key": ..., "request": {"content": {"parts": [{"text": ...}]}, "task_type": ...}}
    """
    return {
        "key": key,
        "request": {
            "content": {"parts": [{"text": text}]},
            "task_type": task_type,
        }
    }


def extract_texts(content, source_format, source_path=None, text_field=None) -> List[str]:
    """
    Split the content of a json, csv or text source into request texts.

    Args:
        content (str): Full file content.
        source_format (SourceFormat): Detected format of the content.
        source_path (str, optional): Path of the source, needed for `text_field` on CSV.
        text_field (str, optional): Column (CSV) or object field (JSON array)
            holding the text. By default the whole raw CSV line or JSON
            element is used.

    Returns:
        list[str]: One text per request, in source order.
    """
    if source_format == SourceFormat.JSON:
        parsed = json.loads(content)
        if not isinstance(parsed, list):
            parsed = [parsed]
        if text_field:
            return read_text_field_json(parsed, text_field)
        return [item if isinstance(item, str) else json.dumps(item) for item in parsed]

    if source_format == SourceFormat.CSV:
        if text_field:
            return read_text_column_csv(source_path, text_field)
        lines = [line for line in content.splitlines() if line.strip()]
        # The header is always discarded
        return lines[1:]

    if source_format == SourceFormat.TEXT:
        return [line for line in content.splitlines() if line.strip()]

    raise ValueError(f"Cannot extract texts from format: {source_format.value}")


#=============================================================================
# JSONL Conversion
#=============================================================================

def convert_to_jsonl(
        source_path,
        source_format,
        output_path,
        kind: RequestKind = RequestKind.CONTENT,
        task_type=None,
        text_field: Optional[str] = None,
        generation_config: Optional[dict] = None,
        show_progress: bool = False
    ) -> IngestionReport:
    """
    Convert a classified source file into a batch request JSONL file.

    jsonl sources are copied line by line (blank lines dropped). json, csv
    and text sources produce one request per element, data row or line,
    keyed `request-1` to `request-N`. The output file is only written once
    every record has been built, and is overwritten if it exists.

    Args:
        source_path (str): Path to the source file.
        source_format (SourceFormat | str): Format from `detect_source_format`.
        output_path (str): Destination JSONL path.
        kind (RequestKind): Target request schema.
        task_type (str, optional): Embedding task type. Required when kind
            is EMBEDDING.
        text_field (str, optional): CSV column or JSON field holding the text.
        generation_config (dict, optional): Attached to every content request.
        show_progress (bool): Whether to display a progress bar.

    Returns:
        IngestionReport: Conversion outcome. `validation_passed` only reflects
            conversion errors here; run `validate_jsonl` on the output to
            check the records.

    Raises:
        InvalidParamsError: If an embedding conversion has no valid task type.
    """
    kind = RequestKind(kind)
    source_format = SourceFormat(source_format)
    source_path = str(source_path)
    output_path = str(output_path)

    if kind == RequestKind.EMBEDDING:
        task_type = parse_task_type(task_type).value

    def _report(total, errors):
        return IngestionReport(
            source_file=source_path,
            output_file=output_path,
            source_format=source_format.value,
            total_requests=total,
            validation_passed=not errors,
            errors=errors,
            task_type=task_type,
        )

    if source_format not in CONVERTIBLE_FORMATS:
        logging.error(f"Unsupported format '{source_format.value}' for {mask_path(source_path)}")
        return _report(0, [f"Unsupported format: {source_format.value}"])

    try:
        if source_format == SourceFormat.JSONL:
            jsonl_lines = read_non_blank_lines(source_path)
        else:
            with open(source_path, 'r', encoding='utf-8') as f:
                content = f.read()
            texts = extract_texts(content, source_format, source_path, text_field)

            jsonl_lines = []
            for i, text in enumerate(tqdm(texts, desc="Converting requests", disable=not show_progress)):
                key = f"request-{i + 1}"
                if kind == RequestKind.EMBEDDING:
                    record = build_embedding_record(key, text, task_type)
                else:
                    record = build_content_record(key, text, generation_config)
                jsonl_lines.append(json.dumps(record, ensure_ascii=False))

        output_dir = os.path.dirname(output_path)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)
        write_jsonl_lines(jsonl_lines, output_path)

    except Exception as e:
        logging.error(f"Conversion of {mask_path(source_path)} failed: {e}")
        return _report(0, [f"Conversion error: {e}"])

    logging.info(f"Converted {len(jsonl_lines)} requests from {mask_path(source_path)} "
                 f"to {mask_path(output_path)}")
    return _report(len(jsonl_lines), [])


#=============================================================================
# Ingestion (detect + convert + validate)
#=============================================================================

def default_output_path(input_file, kind: RequestKind = RequestKind.CONTENT):
    """`<stem>_batch.jsonl` or `<stem>_embeddings.jsonl` next to the input."""
    input_file = Path(input_file)
    suffix = "_embeddings.jsonl" if RequestKind(kind) == RequestKind.EMBEDDING else "_batch.jsonl"
    return str(input_file.with_name(input_file.stem + suffix))


def _check_record_kinds(path, kind):
    """
    Completeness checks against the expected job kind.

    Content files must hold `request.contents` on every line. Embedding
    files must hold `request.content` and a `request.task_type`. Lines that
    match neither schema are left to the structural validation.
    """
    errors = []
    for index, line in enumerate(read_non_blank_lines(path), start=1):
        try:
            record = json.loads(line)
        except json.JSONDecodeError:
            continue
        record_kind = detect_record_kind(record)
        if record_kind is None:
            continue
        if kind == RequestKind.CONTENT:
            if record_kind != RequestKind.CONTENT:
                errors.append(f"Line {index}: missing 'request.contents' for content request")
        elif record_kind != RequestKind.EMBEDDING:
            errors.append(f"Line {index}: missing 'request.content' for embedding request")
        elif not record['request'].get('task_type'):
            errors.append(f"Line {index}: missing 'request.task_type' for embedding request")
    return errors


def validate_request_file(path, kind, task_type=None, source_file=None, source_format="jsonl") -> IngestionReport:
    """
    Validate a request JSONL file and report on it.

    Every line is also checked against `kind`: content files need
    `request.contents`, embedding files need `request.content` and a
    `request.task_type`.

    Args:
        path (str): The JSONL request file.
        kind (RequestKind): Expected request schema.
        task_type (str, optional): Task type recorded in the report.
        source_file (str, optional): File the requests were built from, defaults to `path`.
        source_format (str): Format of `source_file`.
    """
    kind = RequestKind(kind)
    validation = validate_jsonl(path)
    errors = list(validation.errors)
    errors.extend(_check_record_kinds(path, kind))

    return IngestionReport(
        source_file=str(source_file or path),
        output_file=str(path),
        source_format=source_format,
        total_requests=validation.request_count,
        validation_passed=not errors,
        errors=errors,
        warnings=validation.warnings,
        task_type=task_type,
    )


def _ingest(input_file, output_file, kind, task_type=None, text_field=None,
            generation_config=None, show_progress=False):
    descriptor = detect_source_format(input_file)
    logging.info(f"Detected {descriptor.format.value} source ({descriptor.complexity}) "
                 f"at {mask_path(descriptor.path)}")

    output_file = output_file or default_output_path(input_file, kind)
    if os.path.abspath(output_file) == os.path.abspath(descriptor.path):
        raise InvalidParamsError("Output file must differ from the input file.")

    report = convert_to_jsonl(
        descriptor.path,
        descriptor.format,
        output_file,
        kind=kind,
        task_type=task_type,
        text_field=text_field,
        generation_config=generation_config,
        show_progress=show_progress
    )
    if report.errors:
        return report

    return validate_request_file(
        report.output_file, kind,
        task_type=report.task_type,
        source_file=report.source_file,
        source_format=report.source_format
    )


def ingest_content(
        input_file,
        output_file: Optional[str] = None,
        text_field: Optional[str] = None,
        generation_config: Optional[dict] = None,
        show_progress: bool = False
    ) -> IngestionReport:
    """
    Convert a CSV, JSON, TXT, MD or JSONL file into a content generation
    request file and validate it.

    Args:
        input_file (str): Path to the source file.
        output_file (str, optional): Destination JSONL path. Defaults to
            `<stem>_batch.jsonl` next to the input.
        text_field (str, optional): CSV column or JSON field holding the prompt.
        generation_config (dict, optional): Generation settings attached to
            each request (temperature, max_output_tokens, ...).
        show_progress (bool): Whether to display a progress bar.

    Returns:
        IngestionReport
    """
    return _ingest(
        input_file, output_file, RequestKind.CONTENT,
        text_field=text_field,
        generation_config=generation_config,
        show_progress=show_progress
    )


def ingest_embeddings(
        input_file,
        task_type,
        output_file: Optional[str] = None,
        text_field: Optional[str] = None,
        show_progress: bool = False
    ) -> IngestionReport:
    """
    Convert a source file into an embeddings request file and validate it.

    The task type is never inferred here. Use
    `tasks.recommend_task_type` to pick one first.

    Raises:
        InvalidParamsError: If `task_type` is missing or invalid. Raised
            before any file is read or written.
    """
    task_type = parse_task_type(task_type).value
    return _ingest(
        input_file, output_file, RequestKind.EMBEDDING,
        task_type=task_type,
        text_field=text_field,
        show_progress=show_progress
    )
