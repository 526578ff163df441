"""Text extraction from CSV columns and JSON fields."""

import pytest

from gemini_batch_manager.core.utils.datasource import read_text_column_csv, read_text_field_json


def test_csv_column_keeps_text_verbatim(write_file):
    path = write_file("data.csv", 'id,text\n1,"hello, world"\n2,007\n')
    assert read_text_column_csv(path, "text") == ["hello, world", "007"]


def test_csv_missing_column(write_file):
    path = write_file("data.csv", "id,body\n1,x\n")
    with pytest.raises(KeyError):
        read_text_column_csv(path, "text")


def test_csv_column_requires_csv_file(write_file):
    with pytest.raises(ValueError):
        read_text_column_csv(write_file("data.txt", "text\nx\n"), "text")


def test_json_field_serializes_non_strings():
    items = [{"q": "plain"}, {"q": {"nested": True}}]
    assert read_text_field_json(items, "q") == ["plain", '{"nested": true}']


def test_json_field_missing():
    with pytest.raises(KeyError):
        read_text_field_json([{"q": "a"}, {"other": "b"}], "q")
