"""Embedding task types and the task type advisor."""

import pytest

from gemini_batch_manager.core.batching.tasks import (
    EmbeddingTaskType,
    TASK_TYPE_DESCRIPTIONS,
    parse_task_type,
    query_task_type,
    recommend_task_type,
)
from gemini_batch_manager.core.errors import InvalidParamsError


@pytest.mark.parametrize("context, expected, confidence", [
    ("Recommend similar products", "SEMANTIC_SIMILARITY", 0.9),
    ("Categorize support tickets", "CLASSIFICATION", 0.9),
    ("CLASSIFY emails", "CLASSIFICATION", 0.9),
    ("semantic search over docs", "RETRIEVAL_DOCUMENT", 0.8),
    ("retrieval augmented generation", "RETRIEVAL_DOCUMENT", 0.8),
    ("something else entirely", "RETRIEVAL_DOCUMENT", 0.5),
    (None, "RETRIEVAL_DOCUMENT", 0.5),
])
def test_recommend_task_type(context, expected, confidence):
    recommendation = recommend_task_type(context)
    assert recommendation.selected_task_type == expected
    assert recommendation.confidence == confidence


def test_first_matching_rule_wins():
    # "similar" is checked before "search"
    recommendation = recommend_task_type("search for similar articles")
    assert recommendation.selected_task_type == "SEMANTIC_SIMILARITY"


def test_samples_do_not_change_recommendation():
    with_samples = recommend_task_type("classify reviews", ["great", "awful"])
    assert with_samples == recommend_task_type("classify reviews")


def test_parse_task_type_is_case_insensitive():
    assert parse_task_type("fact_verification") == EmbeddingTaskType.FACT_VERIFICATION
    assert parse_task_type(EmbeddingTaskType.CLUSTERING) == EmbeddingTaskType.CLUSTERING


@pytest.mark.parametrize("value", [None, "", "SUMMARIZATION"])
def test_parse_task_type_rejects_missing_or_unknown(value):
    with pytest.raises(InvalidParamsError):
        parse_task_type(value)


def test_query_task_type_describes_every_type():
    payload = query_task_type("cluster news articles", ["a", "b"])

    assert payload["selectedTaskType"] == "RETRIEVAL_DOCUMENT"
    assert payload["recommendation"]["selectedTaskType"] == "RETRIEVAL_DOCUMENT"
    assert set(payload["taskTypeDescriptions"]) == {t.value for t in EmbeddingTaskType}
    assert len(TASK_TYPE_DESCRIPTIONS) == 8
    assert payload["sampleCount"] == 2
