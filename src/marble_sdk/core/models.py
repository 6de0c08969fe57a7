"""Normalized domain models (Pydantic v2).

Entities are immutable value records. Python attributes are snake_case;
the camelCase wire names are accepted on input through an alias
generator, so ``Post.model_validate(wire_dict)`` both validates and
normalizes a payload:

- optional strings that are missing or ``null`` become ``""``
- optional lists that are missing or ``null`` become ``[]``
- ``updatedAt`` falls back to ``publishedAt``
- dates become timezone-aware ``datetime`` values (see ``coerce_datetime``)

Structurally required fields (ids, names, slugs, a post's ``publishedAt``
and ``category``) raise ``pydantic.ValidationError``; the normalizer turns
that into ``InvalidShape``.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Annotated, Any, Generic, Optional, TypeVar

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    model_validator,
)
from pydantic.alias_generators import to_camel

from marble_sdk.core.shared import parse_iso_date

T = TypeVar("T")


def coerce_datetime(value: Any) -> datetime:
    """Coerce a wire date into an aware ``datetime``.

    Accepts a ``datetime`` (naive values are taken as UTC), an ISO-like
    string, or a finite numeric epoch in milliseconds.

    Raises:
        ValueError: For anything else, including booleans and non-finite
            numbers.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, bool):
        raise ValueError("boolean is not a valid date")
    elif isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise ValueError(f"non-finite epoch value: {value}")
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise ValueError(f"epoch value out of range: {value}") from e
    elif isinstance(value, str):
        maybe = parse_iso_date(value)
        if maybe is None:
            raise ValueError(f"unparseable date string: {value!r}")
        parsed = maybe
    else:
        raise ValueError(f"unsupported date value of type {type(value).__name__}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _id_to_str(value: Any) -> Any:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


def _none_to_empty(value: Any) -> Any:
    return "" if value is None else value


def _none_to_list(value: Any) -> Any:
    return [] if value is None else value


EntityId = Annotated[str, BeforeValidator(_id_to_str)]
OptionalText = Annotated[str, BeforeValidator(_none_to_empty)]
WireDate = Annotated[datetime, BeforeValidator(coerce_datetime)]


class _Entity(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class Author(_Entity):
    """An author credited on posts."""

    id: EntityId
    name: str
    image: OptionalText = ""


class Tag(_Entity):
    id: EntityId
    name: str
    slug: str


class Category(_Entity):
    id: EntityId
    name: str
    slug: str


class Attribution(_Entity):
    """Optional credit attached to a post (e.g. image credit)."""

    author: OptionalText = ""
    url: OptionalText = ""


class Post(_Entity):
    """A published article.

    Authors, category and tags are embedded copies, not links.
    """

    id: EntityId
    slug: str
    title: str
    content: OptionalText = ""
    description: OptionalText = ""
    cover_image: OptionalText = ""
    published_at: WireDate
    updated_at: WireDate
    authors: Annotated[list[Author], BeforeValidator(_none_to_list)] = Field(
        default_factory=list
    )
    category: Category
    tags: Annotated[list[Tag], BeforeValidator(_none_to_list)] = Field(
        default_factory=list
    )
    attribution: Optional[Attribution] = None

    @model_validator(mode="before")
    @classmethod
    def _default_updated_at(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        if data.get("updatedAt") is None and data.get("updated_at") is None:
            published = data.get("publishedAt", data.get("published_at"))
            if published is not None:
                data = {k: v for k, v in data.items() if k != "updated_at"}
                data["updatedAt"] = published
        return data


class Pagination(_Entity):
    """Pagination metadata for one page of a list endpoint.

    ``next_page is None`` marks the terminal page; consumers stop there
    regardless of ``total_pages``.
    """

    limit: int
    current_page: int = Field(
        validation_alias=AliasChoices("currentPage", "current_page", "currPage")
    )
    next_page: Optional[int] = None
    previous_page: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("previousPage", "previous_page", "prevPage"),
    )
    total_items: int
    total_pages: int

    @classmethod
    def single_page(cls, item_count: int, current_page: int = 1) -> Pagination:
        """Synthesize the descriptor used when the server sends none."""
        return cls(
            limit=item_count,
            current_page=current_page,
            next_page=None,
            previous_page=None,
            total_items=item_count,
            total_pages=1,
        )


class Page(BaseModel, Generic[T]):
    """One page of normalized items plus its pagination descriptor."""

    model_config = ConfigDict(frozen=True)

    items: list[T]
    pagination: Pagination

    @property
    def posts(self) -> list[T]:
        return self.items

    @property
    def tags(self) -> list[T]:
        return self.items

    @property
    def categories(self) -> list[T]:
        return self.items

    @property
    def authors(self) -> list[T]:
        return self.items


class WebhookEvent(BaseModel, Generic[T]):
    """Inbound webhook delivery envelope."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    id: EntityId
    type: str
    created_at: WireDate
    data: T
