"""
Unit Tests for core helpers: exceptions, middleware helpers, pagination, time
"""
import pytest
from datetime import datetime, timezone, timedelta

from research_portal.core.config import parse_cors_origins
from research_portal.core.database import get_database_url
from research_portal.core.exceptions import (
    ConcurrentUpdateError,
    EvaluationNotFoundError,
    InvalidDeadlineError,
    InvalidWeightsError,
    error_response,
)
from research_portal.core.middleware import extract_resource_id, should_skip_logging
from research_portal.core.types import to_naive_utc
from research_portal.utils.pagination import build_pagination, clamp_page


class TestExceptions:

    def test_not_found_shape(self):
        error = EvaluationNotFoundError("abc")
        assert error.status_code == 404
        assert error_response(error) == {
            "success": False,
            "error": {
                "code": "EVALUATION_NOT_FOUND",
                "message": "Evaluation with ID 'abc' not found",
                "details": {"resource_type": "Evaluation", "resource_id": "abc"},
            },
        }

    def test_invalid_argument_family(self):
        assert InvalidDeadlineError().status_code == 400
        assert InvalidDeadlineError().code == "INVALID_DEADLINE"
        assert InvalidWeightsError("bad", 0.2, 0.2).details == {"advisor_weight": 0.2, "committee_weight": 0.2}

    def test_conflict_family(self):
        error = ConcurrentUpdateError("Field pool", "fp-1")
        assert error.status_code == 409
        assert error.code == "CONCURRENT_UPDATE"


class TestMiddlewareHelpers:

    @pytest.mark.parametrize("path, expected", [
        ("/api/v1/field-pools/abc", "abc"),
        ("/api/v1/field-pools/abc/extend-deadline", "abc"),
        ("/api/v1/evaluations/ev-1/finalize", "ev-1"),
        ("/api/v1/evaluations/scores/s-1", None),
        ("/api/v1/field-pools/all", None),
        ("/api/v1/field-pools", None),
        ("/api/v1/domains", None),
    ])
    def test_extract_resource_id(self, path, expected):
        assert extract_resource_id(path) == expected

    def test_skip_logging(self):
        assert should_skip_logging("/health")
        assert should_skip_logging("/api/v1/health/ready")
        assert not should_skip_logging("/api/v1/field-pools")


class TestPagination:

    def test_clamp(self):
        assert clamp_page(0, 0) == (1, 20)
        assert clamp_page(3, 1000) == (3, 100)

    def test_build(self):
        assert build_pagination(0, 1, 20)["total_pages"] == 1
        meta = build_pagination(41, 2, 20)
        assert meta["total_pages"] == 3
        assert meta["has_next"] is True
        assert meta["has_previous"] is True


class TestConfigAndTypes:

    def test_postgres_url_rewritten(self, monkeypatch):
        from research_portal.core.config import settings
        monkeypatch.setattr(settings, "DATABASE_URL", "postgresql://u:p@db:5432/portal")
        assert get_database_url() == "postgresql+asyncpg://u:p@db:5432/portal"

    def test_cors_parsing(self):
        assert parse_cors_origins("http://a, http://b") == ["http://a", "http://b"]
        assert parse_cors_origins('["http://c"]') == ["http://c"]

    def test_to_naive_utc(self):
        aware = datetime(2030, 1, 1, 12, tzinfo=timezone(timedelta(hours=3)))
        assert to_naive_utc(aware) == datetime(2030, 1, 1, 9)
        assert to_naive_utc(None) is None
