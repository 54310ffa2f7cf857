"""
Utility functions for presenting and saving prune results.

This module provides functions to:
- Render the deletion preview shown before confirmation
- Render the end-of-run summary table
- Save a JSON report of a run
"""
import json
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, List, Sequence

from tabulate import tabulate

from registry_prune.logging_utils import get_logger
from registry_prune.models import ImageTag

logger = get_logger(__name__)


def format_tag_line(image_name: str, tag: ImageTag) -> str:
    """One preview line: ``<image>:<tag> <updated_at>``"""
    return f"{image_name}:{tag.name} {tag.updated_at.isoformat()}"


def format_plan_preview(image_name: str, plan: Sequence[ImageTag]) -> List[str]:
    """Preview lines for every tag in the deletion plan, in plan order"""
    return [format_tag_line(image_name, tag) for tag in plan]


def format_summary_table(summary) -> str:
    """Render a PruneSummary as a grid table"""
    if summary.dry_run:
        outcome = "dry run"
    elif summary.aborted:
        outcome = "aborted"
    else:
        outcome = "done"
    rows = [
        ["Namespace", summary.namespace.name],
        ["Image", summary.image.name],
        ["Tags planned", summary.planned],
        ["Tags deleted", summary.deleted],
        ["Outcome", outcome],
    ]
    return tabulate(rows, headers=["Field", "Value"], tablefmt="grid")


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (set, frozenset, tuple)):
        return list(obj)
    if isinstance(obj, ImageTag):
        return obj.to_dict()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def save_json(path: str, data: Any) -> str:
    """
    Write JSON data to a file with indentation.

    datetimes become ISO strings, enums their values and tags their dict form.

    Args:
        path: Path to save the JSON file
        data: Data to save

    Returns:
        Path to the saved file
    """
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, "w") as f:
        json.dump(data, f, indent=2, default=_json_default)
    logger.info(f"Report saved to {output}")
    return str(output)
