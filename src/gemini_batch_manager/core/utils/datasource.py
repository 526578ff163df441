# -*- coding: utf-8 -*-

import json
from pathlib import Path

import polars as pl


def read_text_column_csv(source_data_file, text_field):
    """
    Read a single text column from a CSV file with a header row.
    Rows with an empty or null value in that column are dropped.
    """
    source_data_file = Path(source_data_file)
    if source_data_file.suffix != '.csv':
        raise ValueError("Source data file must be a CSV file.")

    # Every column as string so that numeric-looking text is kept verbatim
    df = pl.read_csv(source_data_file, infer_schema=False)

    if text_field not in df.columns:
        raise KeyError(f"Expected '{text_field}' column not found in {source_data_file}. "
                       f"Available columns: {df.columns}")

    texts = df.get_column(text_field).to_list()
    return [text for text in texts if text is not None and text.strip()]


def read_text_field_json(items, text_field):
    """
    Extract `text_field` from each object of a parsed JSON array.
    Non-string field values are serialized as JSON.
    """
    texts = []
    for i, item in enumerate(items):
        if not isinstance(item, dict) or text_field not in item:
            raise KeyError(f"Expected '{text_field}' key not found in element {i + 1}.")
        value = item[text_field]
        texts.append(value if isinstance(value, str) else json.dumps(value))
    return texts
