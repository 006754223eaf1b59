from __future__ import annotations

from pathlib import Path

import pytest

from snomed_query.config import DEFAULT_SNAPSHOT, Settings, load_settings
from snomed_query.errors import (
    ConceptNotFoundError,
    ExpressionSyntaxError,
    QueryError,
    UnsupportedFeatureError,
)


def test_defaults() -> None:
    assert load_settings({}) == Settings(snapshot_path=DEFAULT_SNAPSHOT, root_id=None, log_level="INFO")


def test_values_from_environment() -> None:
    settings = load_settings(
        {
            "SNOMED_QUERY_SNAPSHOT": "/tmp/release.jsonl",
            "SNOMED_QUERY_ROOT_ID": " 404684003 ",
            "SNOMED_QUERY_LOG_LEVEL": "debug",
        }
    )
    assert settings.snapshot_path == Path("/tmp/release.jsonl")
    assert settings.root_id == 404684003
    assert settings.log_level == "DEBUG"


def test_invalid_root_id() -> None:
    with pytest.raises(ValueError, match="SNOMED_QUERY_ROOT_ID"):
        load_settings({"SNOMED_QUERY_ROOT_ID": "root"})


def test_error_hierarchy() -> None:
    assert issubclass(ExpressionSyntaxError, QueryError)
    assert issubclass(ExpressionSyntaxError, ValueError)
    assert issubclass(UnsupportedFeatureError, QueryError)
    assert issubclass(ConceptNotFoundError, LookupError)


def test_syntax_error_message() -> None:
    error = ExpressionSyntaxError("Invalid concept id", "12a", 1)
    assert str(error) == "Invalid concept id at position 1: '12a'"
    assert str(ExpressionSyntaxError("Empty")) == "Empty"
