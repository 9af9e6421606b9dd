"""Tests for search query handling and result previews."""

import pytest
from pydantic import ValidationError

from app.models.enums import ProjectType
from app.schemas.search import SearchRequest
from app.services.search import (
    contact_preview,
    cost_preview,
    document_preview,
    project_preview,
    sanitize_search_query,
    truncate_text,
)


class TestSanitizeQuery:

    def test_punctuation_becomes_and_terms(self):
        assert sanitize_search_query("123 Main St.") == "123 & main & st"

    def test_collapses_whitespace(self):
        assert sanitize_search_query("  kitchen    tiles ") == "kitchen & tiles"

    def test_strips_tsquery_operators(self):
        assert sanitize_search_query("roof | !gutter & (paint)") == "roof & gutter & paint"

    def test_only_punctuation_is_empty(self):
        assert sanitize_search_query("!!") == ""


class TestPreviews:

    def test_truncate_short_text_unchanged(self):
        assert truncate_text("short") == "short"

    def test_truncate_long_text(self):
        text = "x" * 200
        preview = truncate_text(text)
        assert preview == "x" * 150 + "..."

    def test_truncate_none(self):
        assert truncate_text(None) == ""

    def test_project_preview_prefers_description(self):
        assert project_preview("Full gut of the kitchen", ProjectType.RENOVATION) == "Full gut of the kitchen"

    def test_project_preview_falls_back_to_type(self):
        assert project_preview(None, ProjectType.NEW_BUILD) == "Project: new_build"

    def test_cost_preview(self):
        assert cost_preview(123456) == "Amount: $1234.56"

    def test_contact_preview_skips_missing_parts(self):
        assert contact_preview("Acme Plumbing", "jo@acme.com.au") == "Acme Plumbing • jo@acme.com.au"
        assert contact_preview(None, "jo@acme.com.au") == "jo@acme.com.au"
        assert contact_preview(None, None) == ""

    def test_document_preview(self):
        assert document_preview("application/pdf", 2048) == "application/pdf • 2.0 KB"


class TestSearchRequest:

    def test_query_too_short(self):
        with pytest.raises(ValidationError):
            SearchRequest(query="a")

    def test_limit_bounds(self):
        with pytest.raises(ValidationError):
            SearchRequest(query="tiles", limit=101)
        assert SearchRequest(query="tiles").limit == 50
