"""Top-level child filtering for calendar block trees."""

import logging
from collections.abc import Callable
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import DEFAULT_SELECTOR, Block, normalize_key

logger = logging.getLogger(__name__)

Predicate = Callable[[Optional[str]], bool]


class SummaryFilter(BaseModel):
    """Keep/drop policy over a selector property value.

    Include tokens win over exclude tokens; both are plain substring tests.
    Blocks without the selector property, or matching neither list, fall back
    to ``default_keep``.
    """

    includes: tuple[str, ...] = Field(default_factory=tuple)
    excludes: tuple[str, ...] = Field(default_factory=tuple)
    default_keep: bool = True
    case_insensitive: bool = True

    model_config = ConfigDict(frozen=True)

    def __call__(self, value: Optional[str]) -> bool:
        if value is None:
            return self.default_keep

        includes = self.includes
        excludes = self.excludes
        if self.case_insensitive:
            value = normalize_key(value)
            includes = tuple(normalize_key(token) for token in includes)
            excludes = tuple(normalize_key(token) for token in excludes)

        if any(token in value for token in includes):
            return True
        if any(token in value for token in excludes):
            return False
        return self.default_keep


def filter_block(root: Block, predicate: Predicate, selector: str = DEFAULT_SELECTOR) -> Block:
    """Return a new block keeping only the top-level children accepted by ``predicate``.

    The root's own properties are copied unchanged. Each child is judged on
    the first ``selector`` property it carries (None when absent); kept
    children are deep copies, so the result shares no state with ``root``.
    Grandchildren are never filtered individually.
    """
    kept = tuple(
        child.model_copy(deep=True)
        for child in root.children
        if predicate(child.get(selector))
    )
    logger.debug(
        "Filter on %s kept %d of %d children of %s",
        selector,
        len(kept),
        len(root.children),
        root.type,
    )
    return Block(
        type=root.type,
        properties=tuple(prop.model_copy() for prop in root.properties),
        children=kept,
    )
