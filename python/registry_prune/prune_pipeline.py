"""
Prune workflow: resolve the image, fetch its tags, apply the retention policy,
ask for confirmation and delete the selected tags one by one.

Deletions are sequential and follow the plan order shown in the preview. The
first failed delete stops the run: tags deleted before it stay deleted, the
rest are left untouched.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterator, List, Optional, Tuple

from registry_prune.config_manager import PruneOptions
from registry_prune.error_utils import PruneError, create_no_image_tags_error
from registry_prune.logging_utils import get_logger
from registry_prune.models import Image, ImageTag, Namespace
from registry_prune.report_utils import format_plan_preview, save_json
from registry_prune.resolver import resolve_image
from registry_prune.retention import DeletionPlan, filter_tags

ConfirmCallback = Callable[[List[str]], bool]
ProgressCallback = Callable[[int, int, str], None]


def _no_progress(current: int, total: int, label: str) -> None:
    pass


@dataclass(frozen=True)
class PruneSummary:
    """Outcome of a prune run that did not fail"""

    namespace: Namespace
    image: Image
    plan: DeletionPlan
    deleted_tags: Tuple[ImageTag, ...] = ()
    aborted: bool = False
    dry_run: bool = False
    finished_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def planned(self) -> int:
        return len(self.plan)

    @property
    def deleted(self) -> int:
        return len(self.deleted_tags)

    def to_dict(self) -> dict:
        return {
            "summary": {
                "namespace": self.namespace.name,
                "namespace_id": self.namespace.id,
                "image": self.image.name,
                "image_id": self.image.id,
                "planned": self.planned,
                "deleted": self.deleted,
                "aborted": self.aborted,
                "dry_run": self.dry_run,
                "finished_at": self.finished_at,
            },
            "planned_tags": list(self.plan),
            "deleted_tags": list(self.deleted_tags),
        }


class PruneRunner:
    """Runs one prune pass for a single image"""

    def __init__(
        self,
        client,
        options: PruneOptions,
        confirm: ConfirmCallback,
        progress: Optional[ProgressCallback] = None,
        now: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize PruneRunner

        Args:
            client: RegistryClient used for every registry call
            options: Immutable run options
            confirm: Receives the preview lines, returns True to go ahead
            progress: Called as (current, total, label) after each deleted tag
            now: Clock used for keep_within (default: current UTC time)
        """
        self.client = client
        self.options = options
        self.confirm = confirm
        self.progress = progress or _no_progress
        self.now = now or (lambda: datetime.now(timezone.utc))
        self.logger = get_logger(self.__class__.__name__)

    def plan(self) -> Tuple[Namespace, Image, DeletionPlan]:
        """Resolve the image and compute the tags to delete, without deleting anything.

        Raises:
            PruneError: On resolution or API failure, or when there is nothing to delete
        """
        namespace, image = resolve_image(self.client, self.options.namespace, self.options.image)
        self.logger.info(f"Operating on image {namespace.name}/{image.name} ({image.id})")

        tags = self.client.list_image_tags(image.id)
        if not tags:
            raise create_no_image_tags_error(image.name)
        self.logger.info(f"Fetched {len(tags)} tags for {namespace.name}/{image.name}")

        plan = filter_tags(self.options.policy, tags, now=self.now(), image_name=image.name)
        return namespace, image, plan

    def iter_deletions(self, image: Image, plan: DeletionPlan) -> Iterator[Tuple[int, ImageTag]]:
        """Delete tags in plan order, yielding (position, tag) after each success.

        Stopping iteration early leaves the remaining tags untouched. A failed
        delete raises immediately.
        """
        total = len(plan)
        for current, tag in enumerate(plan, 1):
            label = f"{image.name}:{tag.name}"
            try:
                self.client.delete_tag(tag.id, force=self.options.force_delete)
            except PruneError as e:
                self.logger.error(f"Failed to delete {label} ({current}/{total}): {e}")
                self.logger.error(f"{current - 1} of {total} tags were deleted before the failure")
                raise
            self.logger.debug(f"Deleted {label} ({current}/{total})")
            self.progress(current, total, label)
            yield current, tag

    def run(self) -> PruneSummary:
        """Run the full prune pass.

        Returns:
            PruneSummary; ``aborted`` is set when the user declined or in dry-run mode

        Raises:
            PruneError: Any failure from resolution, filtering or deletion
        """
        namespace, image, plan = self.plan()
        preview = format_plan_preview(image.name, plan)

        if self.options.dry_run:
            self.logger.info(f"DRY RUN: {len(plan)} tags would be deleted")
            summary = PruneSummary(namespace, image, plan, aborted=True, dry_run=True)
        elif not self._confirmed(preview):
            self.logger.info("Deletion cancelled by user")
            summary = PruneSummary(namespace, image, plan, aborted=True)
        else:
            deleted = tuple(tag for _, tag in self.iter_deletions(image, plan))
            self.logger.info(f"✅ Deleted {len(deleted)} tags from {namespace.name}/{image.name}")
            summary = PruneSummary(namespace, image, plan, deleted_tags=deleted)

        if self.options.output:
            try:
                save_json(self.options.output, summary.to_dict())
            except OSError as e:
                # A report failure does not fail a run that already changed the registry
                self.logger.error(f"❌ Failed to write report to {self.options.output}: {e}")
        return summary

    def _confirmed(self, preview: List[str]) -> bool:
        if self.options.skip_confirmation:
            self.logger.warning("⚠️  Confirmation disabled - skipping confirmation prompt")
            return True
        return bool(self.confirm(preview))
