"""Response normalization.

Turns decoded JSON from list and single-resource endpoints into the
domain models in ``marble_sdk.core.models``. Every resource shares the
same envelope rules through one ``EnvelopeSpec``:

    list envelope    -> resource key, then ``data``, else ``[]``
    pagination       -> ``pagination``, then ``meta.pagination``, else synthesized
    single envelope  -> singular key, then ``data``, else the whole object

Malformed payloads raise ``InvalidShape`` carrying pydantic's error list.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from marble_sdk.core.errors import InvalidShape
from marble_sdk.core.models import Author, Category, Page, Pagination, Post, Tag

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

FALLBACK_KEY = "data"


@dataclass(frozen=True)
class EnvelopeSpec(Generic[M]):
    """Envelope key preferences and entity model for one resource.

    Attributes:
        collection_key: Array key of list responses (e.g. ``posts``)
        singular_key: Object key of single responses (e.g. ``post``)
        model: Entity model the items validate into
    """

    collection_key: str
    singular_key: str
    model: type[M]


POSTS: EnvelopeSpec[Post] = EnvelopeSpec("posts", "post", Post)
TAGS: EnvelopeSpec[Tag] = EnvelopeSpec("tags", "tag", Tag)
CATEGORIES: EnvelopeSpec[Category] = EnvelopeSpec("categories", "category", Category)
AUTHORS: EnvelopeSpec[Author] = EnvelopeSpec("authors", "author", Author)


def _require_mapping(raw: Any, what: str) -> dict:
    if not isinstance(raw, dict):
        raise InvalidShape(
            f"Expected a JSON object for {what}, got {type(raw).__name__}"
        )
    return raw


def _shape_error(what: str, exc: ValidationError) -> InvalidShape:
    details = exc.errors(include_url=False, include_context=False)
    return InvalidShape(
        f"Invalid {what}: {exc.error_count()} validation error(s)",
        details=details,
    )


def extract_collection(raw: Any, spec: EnvelopeSpec) -> list[Any]:
    """Return the raw item list of a list envelope.

    The resource key wins over ``data`` when both are present; a missing
    collection is an empty page.
    """
    envelope = _require_mapping(raw, f"{spec.collection_key} list")
    for key in (spec.collection_key, FALLBACK_KEY):
        if key in envelope and envelope[key] is not None:
            items = envelope[key]
            if not isinstance(items, list):
                raise InvalidShape(
                    f"Expected '{key}' to be a list, got {type(items).__name__}"
                )
            return items
    return []


def extract_pagination(
    raw: dict, item_count: int, requested_page: Optional[int] = None
) -> Pagination:
    """Return the pagination descriptor of a list envelope.

    Looks at top-level ``pagination`` then ``meta.pagination``; when neither
    exists the response is treated as a single, terminal page.
    """
    candidate = raw.get("pagination")
    if candidate is None:
        meta = raw.get("meta")
        if isinstance(meta, dict):
            candidate = meta.get("pagination")

    if candidate is None:
        logger.debug("No pagination in envelope; treating as a single page")
        return Pagination.single_page(item_count, requested_page or 1)

    try:
        return Pagination.model_validate(candidate)
    except ValidationError as e:
        raise _shape_error("pagination", e) from e


def extract_single(raw: Any, spec: EnvelopeSpec) -> Any:
    """Return the raw resource object of a single-resource envelope."""
    envelope = _require_mapping(raw, spec.singular_key)
    for key in (spec.singular_key, FALLBACK_KEY):
        value = envelope.get(key)
        if isinstance(value, dict):
            return value
    return envelope


def normalize_list(
    raw: Any, spec: EnvelopeSpec[M], requested_page: Optional[int] = None
) -> Page[M]:
    """Normalize a list response into a ``Page``."""
    raw_items = extract_collection(raw, spec)
    try:
        items = [spec.model.model_validate(item) for item in raw_items]
    except ValidationError as e:
        raise _shape_error(f"{spec.collection_key} item", e) from e

    pagination = extract_pagination(raw, len(items), requested_page)
    return Page[spec.model](items=items, pagination=pagination)


def normalize_single(raw: Any, spec: EnvelopeSpec[M]) -> M:
    """Normalize a single-resource response into its entity model."""
    resource = extract_single(raw, spec)
    try:
        return spec.model.model_validate(resource)
    except ValidationError as e:
        raise _shape_error(spec.singular_key, e) from e


def list_shape(
    spec: EnvelopeSpec[M], requested_page: Optional[int] = None
) -> Callable[[Any], Page[M]]:
    """Build the executor ``shape`` callable for a list endpoint."""

    def shape(raw: Any) -> Page[M]:
        return normalize_list(raw, spec, requested_page)

    return shape


def single_shape(spec: EnvelopeSpec[M]) -> Callable[[Any], M]:
    """Build the executor ``shape`` callable for a single-resource endpoint."""

    def shape(raw: Any) -> M:
        return normalize_single(raw, spec)

    return shape
