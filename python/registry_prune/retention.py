#!/usr/bin/env python3
"""
Retention policy for image tags.

A policy has two optional rules:
- keep_last N: keep the N most recently updated tags
- keep_within D: keep every tag updated less than D ago

A tag survives when it satisfies either configured rule. With no rule set,
every tag is selected for deletion.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, Tuple

from registry_prune.error_utils import create_no_image_tags_error, create_no_matching_tags_error
from registry_prune.logging_utils import get_logger
from registry_prune.models import ImageTag

logger = get_logger(__name__)

DeletionPlan = Tuple[ImageTag, ...]

_DURATION_PART = re.compile(r"\s*(\d+)\s*([A-Za-z]+)\s*")

_UNIT_SECONDS = {
    "s": 1, "sec": 1, "secs": 1, "second": 1, "seconds": 1,
    "m": 60, "min": 60, "mins": 60, "minute": 60, "minutes": 60,
    "h": 3600, "hr": 3600, "hrs": 3600, "hour": 3600, "hours": 3600,
    "d": 86400, "day": 86400, "days": 86400,
    "w": 7 * 86400, "week": 7 * 86400, "weeks": 7 * 86400,
    "month": 30 * 86400, "months": 30 * 86400,
    "y": 365 * 86400, "year": 365 * 86400, "years": 365 * 86400,
}


def parse_duration(text: str) -> timedelta:
    """Parse a human duration such as "3d", "1w 2d" or "12h30m".

    "m" is minutes and "M" is months (30 days); other units are case-insensitive.

    Args:
        text: Duration string

    Returns:
        Parsed timedelta

    Raises:
        ValueError: If the string is empty, malformed, or zero
    """
    if not text or not text.strip():
        raise ValueError("Duration must not be empty")

    seconds = 0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if not match:
            raise ValueError(f"Invalid duration: '{text}' (expected e.g. 3d, 12h, 1w 2d)")
        value, unit = int(match.group(1)), match.group(2)
        if unit == "M":
            multiplier = 30 * 86400
        else:
            multiplier = _UNIT_SECONDS.get(unit.lower())
        if multiplier is None:
            raise ValueError(f"Unknown duration unit '{unit}' in '{text}'")
        seconds += value * multiplier
        pos = match.end()

    if seconds <= 0:
        raise ValueError(f"Duration must be greater than zero: '{text}'")
    try:
        return timedelta(seconds=seconds)
    except OverflowError:
        raise ValueError(f"Duration is too large: '{text}'")


@dataclass(frozen=True)
class RetentionPolicy:
    """Which tags to keep"""

    keep_last: Optional[int] = None
    keep_within: Optional[timedelta] = None

    def __post_init__(self):
        if self.keep_last is not None and (not isinstance(self.keep_last, int) or self.keep_last < 0):
            raise ValueError(f"keep_last must be a non-negative integer, got: {self.keep_last}")
        if self.keep_within is not None and self.keep_within <= timedelta(0):
            raise ValueError(f"keep_within must be a positive duration, got: {self.keep_within}")

    def describe(self) -> str:
        rules = []
        if self.keep_last is not None:
            rules.append(f"keep last {self.keep_last}")
        if self.keep_within is not None:
            rules.append(f"keep within {self.keep_within}")
        return " or ".join(rules) if rules else "keep nothing"


def sort_by_recency(tags: Iterable[ImageTag]) -> Tuple[ImageTag, ...]:
    """Most recently updated first. Stable for equal timestamps."""
    return tuple(sorted(tags, key=lambda tag: tag.updated_at, reverse=True))


def filter_tags(
    policy: RetentionPolicy,
    tags: Iterable[ImageTag],
    now: Optional[datetime] = None,
    image_name: str = "",
) -> DeletionPlan:
    """Compute the tags to delete under ``policy``.

    Args:
        policy: Retention policy
        tags: All tags of one image, in any order
        now: Reference time for keep_within (default: current UTC time)
        image_name: Image name, used in error details

    Returns:
        Tags to delete, most recently updated first

    Raises:
        PruneError: NO_IMAGE_TAGS if ``tags`` is empty,
            NO_MATCHING_IMAGE_TAGS if the policy keeps every tag
    """
    ranked = sort_by_recency(tags)
    if not ranked:
        raise create_no_image_tags_error(image_name)

    now = now or datetime.now(timezone.utc)

    def retained(rank: int, tag: ImageTag) -> bool:
        if policy.keep_last is not None and rank < policy.keep_last:
            return True
        if policy.keep_within is not None and now - tag.updated_at < policy.keep_within:
            return True
        return False

    plan = tuple(tag for rank, tag in enumerate(ranked) if not retained(rank, tag))
    logger.info(f"Retention ({policy.describe()}): {len(plan)} of {len(ranked)} tags selected for deletion")

    if not plan:
        raise create_no_matching_tags_error(image_name, len(ranked))
    return plan
