"""Tests for entity models and response normalization.

Tests cover:
1. Envelope precedence (resource key over ``data``)
2. Pagination extraction and synthesis
3. Single-resource extraction
4. Default substitution for optional fields
5. Date coercion (ISO, epoch milliseconds, rejections)
6. InvalidShape for structural violations
"""

import math
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from marble_sdk.core.errors import InvalidShape
from marble_sdk.core.models import Pagination, Post, coerce_datetime
from marble_sdk.core.normalizer import (
    AUTHORS,
    CATEGORIES,
    POSTS,
    TAGS,
    extract_collection,
    extract_pagination,
    extract_single,
    normalize_list,
    normalize_single,
)
from tests.helpers import make_pagination, make_post


class TestEnvelopeExtraction:
    """Tests for collection and single-resource key preference."""

    def test_resource_key_wins_over_data(self):
        raw = {"posts": [make_post(slug="from-posts")], "data": [make_post(slug="from-data")]}
        page = normalize_list(raw, POSTS)
        assert [p.slug for p in page.posts] == ["from-posts"]

    def test_data_fallback(self):
        raw = {"data": [{"id": "t1", "name": "Python", "slug": "python"}]}
        page = normalize_list(raw, TAGS)
        assert page.tags[0].slug == "python"

    def test_missing_collection_is_empty(self):
        page = normalize_list({}, CATEGORIES)
        assert page.items == []
        assert page.pagination.total_items == 0

    def test_non_object_envelope(self):
        with pytest.raises(InvalidShape):
            extract_collection([make_post()], POSTS)

    def test_non_list_collection(self):
        with pytest.raises(InvalidShape):
            extract_collection({"posts": {"id": "p1"}}, POSTS)

    def test_single_prefers_singular_key(self):
        raw = {"post": {"id": "a"}, "data": {"id": "b"}}
        assert extract_single(raw, POSTS) == {"id": "a"}

    def test_single_data_fallback(self):
        assert extract_single({"data": {"id": "b"}}, POSTS) == {"id": "b"}

    def test_single_inline(self):
        raw = {"id": "a1", "name": "Ada"}
        assert extract_single(raw, AUTHORS) == raw


class TestPaginationExtraction:
    """Tests for pagination lookup order and synthesis."""

    def test_top_level(self):
        raw = {"pagination": make_pagination(current=2, next_page=3, total_pages=3)}
        pagination = extract_pagination(raw, 10)
        assert pagination.current_page == 2
        assert pagination.next_page == 3

    def test_meta_fallback(self):
        raw = {"meta": {"pagination": make_pagination(current=1, next_page=2)}}
        assert extract_pagination(raw, 10).next_page == 2

    def test_top_level_wins_over_meta(self):
        raw = {
            "pagination": make_pagination(current=1, next_page=None),
            "meta": {"pagination": make_pagination(current=1, next_page=2)},
        }
        assert extract_pagination(raw, 1).next_page is None

    def test_synthesized_when_absent(self):
        pagination = extract_pagination({}, 3, requested_page=4)
        assert pagination == Pagination(
            limit=3,
            current_page=4,
            next_page=None,
            previous_page=None,
            total_items=3,
            total_pages=1,
        )

    def test_legacy_aliases(self):
        raw = {
            "pagination": {
                "limit": 5,
                "currPage": 2,
                "nextPage": None,
                "prevPage": 1,
                "totalItems": 7,
                "totalPages": 2,
            }
        }
        pagination = extract_pagination(raw, 2)
        assert pagination.current_page == 2
        assert pagination.previous_page == 1

    def test_malformed_pagination(self):
        with pytest.raises(InvalidShape):
            extract_pagination({"pagination": {"limit": "many"}}, 1)


class TestPostNormalization:
    """Tests for post defaults and validation."""

    def test_full_post(self):
        post = normalize_single({"post": make_post()}, POSTS)
        assert isinstance(post, Post)
        assert post.cover_image == "https://cdn.example.com/cover.png"
        assert post.published_at == datetime(2024, 1, 15, 10, tzinfo=timezone.utc)
        assert post.authors[0].name == "Ada"
        assert post.category.slug == "news"
        assert post.attribution is None

    def test_optional_fields_default(self):
        raw = make_post(content=None, description=None, coverImage=None, authors=None, tags=None)
        del raw["updatedAt"]
        post = Post.model_validate(raw)
        assert post.content == ""
        assert post.description == ""
        assert post.cover_image == ""
        assert post.authors == []
        assert post.tags == []
        assert post.updated_at == post.published_at

    def test_attribution_defaults(self):
        post = Post.model_validate(make_post(attribution={"author": None}))
        assert post.attribution is not None
        assert post.attribution.author == ""
        assert post.attribution.url == ""

    def test_integer_ids_coerced(self):
        post = Post.model_validate(make_post(id=42, category={"id": 7, "name": "N", "slug": "n"}))
        assert post.id == "42"
        assert post.category.id == "7"

    def test_author_image_defaults(self):
        post = Post.model_validate(make_post(authors=[{"id": "a", "name": "Ada"}]))
        assert post.authors[0].image == ""

    @pytest.mark.parametrize("missing", ["id", "slug", "title", "publishedAt", "category"])
    def test_required_fields(self, missing):
        raw = make_post()
        del raw[missing]
        with pytest.raises(InvalidShape) as exc_info:
            normalize_single(raw, POSTS)
        assert exc_info.value.details

    def test_snake_case_input_accepted(self):
        post = Post.model_validate(
            {
                "id": "p",
                "slug": "s",
                "title": "t",
                "published_at": "2024-01-01T00:00:00Z",
                "category": {"id": "c", "name": "C", "slug": "c"},
            }
        )
        assert post.updated_at == post.published_at

    def test_entities_are_immutable(self):
        post = Post.model_validate(make_post())
        with pytest.raises(ValidationError):
            post.title = "changed"

    def test_item_violation_in_list(self):
        raw = {"posts": [make_post(), {"id": "broken"}]}
        with pytest.raises(InvalidShape):
            normalize_list(raw, POSTS)


class TestCoerceDatetime:
    """Tests for wire date coercion."""

    def test_iso_with_z(self):
        assert coerce_datetime("2024-01-15T10:00:00.000Z") == datetime(
            2024, 1, 15, 10, tzinfo=timezone.utc
        )

    def test_naive_iso_is_utc(self):
        assert coerce_datetime("2024-01-15T10:00:00").tzinfo is not None

    def test_epoch_milliseconds(self):
        assert coerce_datetime(1_700_000_000_000) == datetime.fromtimestamp(
            1_700_000_000, tz=timezone.utc
        )

    def test_datetime_passthrough(self):
        value = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert coerce_datetime(value) == value

    @pytest.mark.parametrize("value", [True, math.nan, math.inf, "yesterday", {"d": 1}, None])
    def test_rejected(self, value):
        with pytest.raises(ValueError):
            coerce_datetime(value)

    def test_invalid_date_in_post_is_invalid_shape(self):
        with pytest.raises(InvalidShape):
            normalize_single(make_post(publishedAt=True), POSTS)


class TestScenario:
    """GET /posts?limit=10 returning one post."""

    def test_one_post_page(self):
        raw = {"posts": [make_post()], "pagination": make_pagination(limit=10)}
        page = normalize_list(raw, POSTS, requested_page=None)
        assert len(page.posts) == 1
        assert page.posts[0].slug == "hello-world"
        assert isinstance(page.posts[0].published_at, datetime)
        assert page.pagination.next_page is None
