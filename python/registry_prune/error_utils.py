"""
Error types for the registry prune tool.

Every failure the prune pipeline can report is a PruneError carrying one of
the ErrorKind values below. Callers branch on ``error.kind``; the set of kinds
is closed, so a table keyed on ErrorKind covers every outcome.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorKind(Enum):
    """Kinds of prune failures"""
    API = "api"
    NO_SUCH_NAMESPACE = "no_such_namespace"
    NO_SUCH_IMAGE = "no_such_image"
    NO_IMAGE_TAGS = "no_image_tags"
    NO_MATCHING_IMAGE_TAGS = "no_matching_image_tags"


class ConfigValidationError(Exception):
    """Raised when configuration validation fails"""


class PruneError(Exception):
    """Exception with a kind and actionable guidance for users"""

    def __init__(self, kind: ErrorKind, message: str,
                 suggestions: Optional[List[str]] = None, details: Optional[Dict[str, Any]] = None):
        """Initialize prune error

        Args:
            kind: Which failure this is
            message: Primary error message
            suggestions: List of suggested fixes
            details: Additional context information
        """
        self.kind = kind
        self.message = message
        self.suggestions = suggestions or []
        self.details = details or {}
        super().__init__(message)

    def format_message(self) -> str:
        """Format the complete error message with suggestions"""
        lines = [f"❌ {self.message}"]

        if self.suggestions:
            lines.append("\n💡 Suggested fixes:")
            for i, suggestion in enumerate(self.suggestions, 1):
                lines.append(f"   {i}. {suggestion}")

        if self.details:
            lines.append("\n📋 Additional details:")
            for key, value in self.details.items():
                lines.append(f"   {key}: {value}")

        return "\n".join(lines)


def create_api_error(message: str, status_code: Optional[int] = None, url: Optional[str] = None) -> PruneError:
    """Create an API error for a non-2xx response or a transport failure.

    The registry's own message is kept verbatim as the error message.
    """
    suggestions = []
    details: Dict[str, Any] = {}

    if status_code in (401, 403):
        suggestions.append("Verify SCW_TOKEN (or --scw-token) holds a valid secret key")
        suggestions.append("Check the token's IAM policy grants registry access")
    elif status_code == 404:
        suggestions.append("Verify the region (SCW_REGION or --region) hosts this registry")
    elif status_code is None:
        suggestions.append("Check network connectivity to the Scaleway API")

    if status_code is not None:
        details["status_code"] = status_code
    if url:
        details["url"] = url

    return PruneError(ErrorKind.API, message, suggestions=suggestions, details=details)


def create_no_such_namespace_error(namespace_name: str) -> PruneError:
    """Create error for a namespace name that matched nothing"""
    return PruneError(
        ErrorKind.NO_SUCH_NAMESPACE,
        f"No such namespace: {namespace_name}",
        suggestions=[
            "Namespace names are matched exactly and are case-sensitive",
            "Check the region: namespaces are listed per region",
        ],
        details={"namespace": namespace_name},
    )


def create_no_such_image_error(namespace_name: str, image_name: str) -> PruneError:
    """Create error for an image that does not exist in the named namespace"""
    return PruneError(
        ErrorKind.NO_SUCH_IMAGE,
        f"No such image: {namespace_name}/{image_name}",
        suggestions=[f"Verify the image '{image_name}' is pushed to namespace '{namespace_name}'"],
        details={"namespace": namespace_name, "image": image_name},
    )


def create_no_image_tags_error(image_name: str) -> PruneError:
    """Create error for an image without any tags"""
    return PruneError(
        ErrorKind.NO_IMAGE_TAGS,
        "The image has no tags associated with it",
        details={"image": image_name},
    )


def create_no_matching_tags_error(image_name: str, total_tags: int) -> PruneError:
    """Create error for a retention policy that keeps every tag"""
    return PruneError(
        ErrorKind.NO_MATCHING_IMAGE_TAGS,
        "No image tags match the given criteria",
        suggestions=["Lower --keep-last or shorten --keep-within to select tags for deletion"],
        details={"image": image_name, "total_tags": total_tags},
    )
