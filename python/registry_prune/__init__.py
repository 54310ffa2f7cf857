"""
Prune old image tags from the Scaleway container registry.

The pieces, from the bottom up:
- RegistryClient: registry API calls
- resolve_image: namespace/image names to registry records
- filter_tags: retention policy to deletion plan
- PruneRunner: confirmation and the sequential delete loop
"""

from registry_prune.error_utils import ConfigValidationError, ErrorKind, PruneError
from registry_prune.prune_pipeline import PruneRunner, PruneSummary
from registry_prune.registry_client import RegistryClient
from registry_prune.resolver import resolve_image
from registry_prune.retention import RetentionPolicy, filter_tags, parse_duration

__version__ = "0.1.0"

__all__ = [
    "ConfigValidationError",
    "ErrorKind",
    "PruneError",
    "PruneRunner",
    "PruneSummary",
    "RegistryClient",
    "RetentionPolicy",
    "filter_tags",
    "parse_duration",
    "resolve_image",
]
