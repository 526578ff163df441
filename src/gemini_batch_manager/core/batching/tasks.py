# -*- coding: utf-8 -*-

"""
Embedding task types and a keyword-based advisor to pick one.
"""

import logging
from enum import Enum
from typing import List, Optional

from ..errors import InvalidParamsError
from .models import TaskTypeRecommendation


class EmbeddingTaskType(str, Enum):
    SEMANTIC_SIMILARITY = "SEMANTIC_SIMILARITY"
    CLASSIFICATION = "CLASSIFICATION"
    CLUSTERING = "CLUSTERING"
    RETRIEVAL_DOCUMENT = "RETRIEVAL_DOCUMENT"
    RETRIEVAL_QUERY = "RETRIEVAL_QUERY"
    CODE_RETRIEVAL_QUERY = "CODE_RETRIEVAL_QUERY"
    QUESTION_ANSWERING = "QUESTION_ANSWERING"
    FACT_VERIFICATION = "FACT_VERIFICATION"


TASK_TYPE_DESCRIPTIONS = {
    EmbeddingTaskType.SEMANTIC_SIMILARITY: "Find similar content, e.g. recommendations or duplicate detection.",
    EmbeddingTaskType.CLASSIFICATION: "Categorize texts into predefined labels.",
    EmbeddingTaskType.CLUSTERING: "Group texts by similarity without predefined labels.",
    EmbeddingTaskType.RETRIEVAL_DOCUMENT: "Index documents to be searched.",
    EmbeddingTaskType.RETRIEVAL_QUERY: "Embed search queries run against indexed documents.",
    EmbeddingTaskType.CODE_RETRIEVAL_QUERY: "Retrieve code blocks from natural language queries.",
    EmbeddingTaskType.QUESTION_ANSWERING: "Embed questions for question answering systems.",
    EmbeddingTaskType.FACT_VERIFICATION: "Embed statements to be verified against evidence.",
}

# Checked in order, first match wins.
_KEYWORD_RULES = [
    (("similar", "recommend"), EmbeddingTaskType.SEMANTIC_SIMILARITY, 0.9,
     "Context mentions finding similar content"),
    (("categor", "classif"), EmbeddingTaskType.CLASSIFICATION, 0.9,
     "Context mentions categorization or classification"),
    (("search", "retriev"), EmbeddingTaskType.RETRIEVAL_DOCUMENT, 0.8,
     "Context mentions search or retrieval"),
]


def parse_task_type(task_type) -> EmbeddingTaskType:
    """
    Coerce a task type name (case-insensitive) into an EmbeddingTaskType.

    Raises:
        InvalidParamsError: If no task type is given or it is not one of the
            eight supported values.
    """
    if isinstance(task_type, EmbeddingTaskType):
        return task_type
    if not task_type:
        raise InvalidParamsError(
            "An embedding task type is required. Use 'query-task-type' for a recommendation."
        )
    try:
        return EmbeddingTaskType(str(task_type).strip().upper())
    except ValueError:
        valid = ", ".join(t.value for t in EmbeddingTaskType)
        raise InvalidParamsError(f"Invalid task type '{task_type}'. Expected one of: {valid}")


def recommend_task_type(
        context: Optional[str],
        sample_texts: Optional[List[str]] = None
    ) -> TaskTypeRecommendation:
    """
    Recommend an embedding task type from a free-text description of the use case.

    Args:
        context (str): Description of what the embeddings will be used for.
        sample_texts (list[str], optional): Sample inputs. Accepted but not
            used for scoring yet.

    Returns:
        TaskTypeRecommendation: Advisory only, callers may override it.
    """
    context_lower = (context or "").lower()

    for keywords, task_type, confidence, reasoning in _KEYWORD_RULES:
        if any(keyword in context_lower for keyword in keywords):
            return TaskTypeRecommendation(task_type.value, confidence, reasoning)

    return TaskTypeRecommendation(
        EmbeddingTaskType.RETRIEVAL_DOCUMENT.value,
        0.5,
        "Default to document retrieval (most common use case)"
    )


def query_task_type(context=None, sample_content=None):
    """
    Build the task type guidance payload: the recommendation plus a
    description of every available task type.
    """
    recommendation = recommend_task_type(context, sample_content)
    logging.info(f"Recommended task type: {recommendation.selected_task_type} "
                 f"(confidence {recommendation.confidence:.1f})")
    return {
        "selectedTaskType": recommendation.selected_task_type,
        "recommendation": recommendation.to_dict(),
        "taskTypeDescriptions": {
            task_type.value: description
            for task_type, description in TASK_TYPE_DESCRIPTIONS.items()
        },
        "context": context,
        "sampleCount": len(sample_content or []),
    }
