# -*- coding: utf-8 -*-

import json
import logging
from typing import Any, List


def extract_response_text(response: dict) -> str | None:
    """
    Join the text parts of the first candidate of a GenerateContentResponse
    dump. Returns None when the response carries no text.
    """
    if not isinstance(response, dict):
        return None
    if isinstance(response.get('text'), str):
        return response['text']
    candidates = response.get('candidates') or []
    if not candidates:
        return None
    parts = (candidates[0].get('content') or {}).get('parts') or []
    texts = [part['text'] for part in parts if isinstance(part.get('text'), str)]
    return "".join(texts) if texts else None


def parse_inline_response(item: Any) -> Any:
    """
    Unwrap one inline batch response.

    - errored request -> {"error": <error>}
    - content response -> generated text (or the raw response if it has none)
    - embedding response -> list of embedding values
    """
    if not isinstance(item, dict):
        return item
    if item.get('error') is not None:
        return {'error': item['error']}

    response = item.get('response')
    if response is None:
        return item

    embedding = response.get('embedding') if isinstance(response, dict) else None
    if isinstance(embedding, dict) and 'values' in embedding:
        return embedding['values']

    text = extract_response_text(response)
    return text if text is not None else response


def parse_inline_responses(responses: List[Any]) -> List[Any]:
    """Unwrap inline batch responses, preserving their order."""
    results = [parse_inline_response(item) for item in responses]
    errors = sum(1 for r in results if isinstance(r, dict) and 'error' in r and len(r) == 1)
    if errors:
        logging.warning(f"{errors} of {len(results)} inline requests returned an error")
    return results


def parse_results_jsonl(content: bytes | str) -> List[Any]:
    """
    Parse a downloaded results file, one JSON object per non-blank line.

    Raises:
        ValueError: If any line is not valid JSON. The whole download is
            rejected in that case.
    """
    if isinstance(content, bytes):
        content = content.decode('utf-8')

    results = []
    for index, line in enumerate(content.split('\n'), start=1):
        if not line.strip():
            continue
        try:
            results.append(json.loads(line))
        except json.JSONDecodeError as e:
            raise ValueError(f"Line {index} of the results file is not valid JSON: {e}") from e
    return results
