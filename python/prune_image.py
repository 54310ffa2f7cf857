#!/usr/bin/env python3
"""
Delete old tags of one image in the Scaleway container registry.

Workflow:
- Look up the namespace and the image by name
- Fetch the image's tags and apply the retention policy
- Show the tags that would be deleted and ask for confirmation
- Delete them one by one, most recently updated first

Usage examples:
  # Keep the 5 most recent tags of prod/api
  python prune_image.py prod/api --keep-last 5

  # Keep tags updated in the last two weeks, and at least the 3 most recent
  python prune_image.py prod/api --keep-last 3 --keep-within 2w

  # Show what would be deleted without deleting
  python prune_image.py prod/api --keep-last 5 --dry-run

  # Delete without confirmation and save a JSON report
  python prune_image.py prod/api --keep-within 30d --force --output reports/prune.json
"""

import argparse
import sys
from typing import List, Optional, Tuple

import tqdm

from registry_prune import __version__
from registry_prune.config_manager import ConfigManager
from registry_prune.error_utils import ConfigValidationError, ErrorKind, PruneError
from registry_prune.logging_utils import get_logger, log_exception, setup_logging
from registry_prune.prune_pipeline import PruneRunner
from registry_prune.registry_client import RegistryClient
from registry_prune.report_utils import format_plan_preview, format_summary_table

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_USAGE = 2

EXIT_CODES = {
    ErrorKind.API: 1,
    ErrorKind.NO_SUCH_NAMESPACE: 3,
    ErrorKind.NO_SUCH_IMAGE: 3,
    ErrorKind.NO_IMAGE_TAGS: 4,
    ErrorKind.NO_MATCHING_IMAGE_TAGS: 4,
}


def parse_image_argument(arg: str) -> Optional[Tuple[str, str]]:
    """Split ``<namespace>/<image>`` on the first slash.

    Returns None when either part is missing or empty.
    """
    namespace, sep, image = arg.partition("/")
    if not sep or not namespace or not image:
        return None
    return namespace, image


def image_argument(value: str) -> Tuple[str, str]:
    """argparse type for the NAMESPACE/IMAGE positional"""
    parsed = parse_image_argument(value)
    if parsed is None:
        raise argparse.ArgumentTypeError("Must be specified in the format `<namespace>/<image>'")
    return parsed


def non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid value '{value}': must be an integer >= 0")
    if number < 0:
        raise argparse.ArgumentTypeError(f"Invalid value '{value}': must be an integer >= 0")
    return number


def is_affirmative(answer: str) -> bool:
    return answer in ("y", "Y")


def console_confirm(preview: List[str]) -> bool:
    """Print the deletion preview and read one line of input from the user"""
    print("\n".join(preview))
    print("\n" + "=" * 60)
    print("⚠️  WARNING: You are about to DELETE image tags from the registry!")
    print("=" * 60)
    print(f"This will delete {len(preview)} tags.")
    print("This action cannot be undone.")
    print("=" * 60)
    try:
        answer = input("Do you want to continue? [y/N]: ")
    except EOFError:
        return False
    return is_affirmative(answer)


class TqdmProgress:
    """Progress callback backed by a tqdm bar, created on the first report"""

    def __init__(self, desc: str = "Deleting tags"):
        self.desc = desc
        self.bar = None

    def __call__(self, current: int, total: int, label: str) -> None:
        if self.bar is None:
            self.bar = tqdm.tqdm(total=total, desc=self.desc, unit="tag")
        self.bar.set_postfix_str(label)
        self.bar.update(current - self.bar.n)

    def close(self) -> None:
        if self.bar is not None:
            self.bar.close()


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description="Prunes Scaleway container registries",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python prune_image.py prod/api --keep-last 5
  python prune_image.py prod/api --keep-last 3 --keep-within 2w
  python prune_image.py prod/api --keep-within 30d --dry-run
        """,
    )

    parser.add_argument("image", type=image_argument, metavar="NAMESPACE/IMAGE", help="Image to prune")

    parser.add_argument("--keep-last", type=non_negative_int, metavar="N", help="Keep the last N versions")

    parser.add_argument(
        "--keep-within",
        metavar="DURATION",
        help="Keep versions that are newer than DURATION (e.g. 3d) relative to current time",
    )

    parser.add_argument("--region", help="The target region (default: SCW_REGION or config)")

    parser.add_argument("--scw-token", dest="token", help="Authentication token (default: SCW_TOKEN or config)")

    parser.add_argument("--api-url", help="Registry API root URL (default: public Scaleway API)")

    parser.add_argument("--timeout", type=int, help="Per-request timeout in seconds (default: 30)")

    parser.add_argument("--force", action="store_true", help="Skip the confirmation prompt")

    parser.add_argument(
        "--force-delete",
        action="store_true",
        help="Also delete tags whose digest is shared with another tag",
    )

    parser.add_argument("--dry-run", action="store_true", help="Show the tags that would be deleted and exit")

    parser.add_argument("--output", help="Write a JSON report of the run to this file")

    parser.add_argument("--config", help="Path to config.yaml (default: CONFIG_FILE env var or ./config.yaml)")

    parser.add_argument("--log-level", help="Logging level (default: from config or INFO)")

    parser.add_argument("--show-config", action="store_true", help="Print the effective configuration before running")

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main function"""
    args = parse_arguments(argv)
    setup_logging(args.log_level or "INFO")

    try:
        config = ConfigManager(args.config)
        setup_logging(args.log_level or config.get_log_level())
        if args.show_config:
            config.print_config()

        namespace_name, image_name = args.image
        options = config.build_options(
            namespace_name,
            image_name,
            region=args.region,
            token=args.token,
            api_url=args.api_url,
            timeout=args.timeout,
            keep_last=args.keep_last,
            keep_within=args.keep_within,
            skip_confirmation=args.force,
            force_delete=args.force_delete,
            dry_run=args.dry_run,
            output=args.output,
        )
    except ConfigValidationError as e:
        logger.error(f"❌ {e}")
        return EXIT_USAGE

    client = RegistryClient(options.token, options.region, api_url=options.api_url, timeout=options.timeout)
    progress = TqdmProgress()
    runner = PruneRunner(client, options, confirm=console_confirm, progress=progress)

    logger.info(f"Pruning {options.namespace}/{options.image} in {options.region} ({options.policy.describe()})")
    try:
        summary = runner.run()
    except PruneError as e:
        logger.error(e.format_message())
        return EXIT_CODES[e.kind]
    except KeyboardInterrupt:
        logger.warning("\n⚠️  Operation interrupted by user")
        return 1
    except Exception as e:
        log_exception(logger, "Unexpected error while pruning", exc_info=e)
        return 1
    finally:
        progress.close()

    if summary.dry_run:
        print("\n".join(format_plan_preview(summary.image.name, summary.plan)))
    print(format_summary_table(summary))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
