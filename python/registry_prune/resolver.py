"""Resolve a namespace/image name pair to registry records."""

from typing import Tuple

from registry_prune.error_utils import create_no_such_image_error, create_no_such_namespace_error
from registry_prune.logging_utils import get_logger
from registry_prune.models import Image, Namespace

logger = get_logger(__name__)


def resolve_image(client, namespace_name: str, image_name: str) -> Tuple[Namespace, Image]:
    """Find the namespace named ``namespace_name`` and the image ``image_name`` inside it.

    Names are matched exactly. An image with the right name in another
    namespace does not count.

    Args:
        client: RegistryClient (or anything with list_namespaces/list_images)
        namespace_name: Namespace name as given by the user
        image_name: Image name as given by the user

    Returns:
        Tuple of (Namespace, Image)

    Raises:
        PruneError: NO_SUCH_NAMESPACE, NO_SUCH_IMAGE, or API from the client
    """
    namespace = next((ns for ns in client.list_namespaces() if ns.name == namespace_name), None)
    if namespace is None:
        raise create_no_such_namespace_error(namespace_name)
    logger.debug(f"Resolved namespace {namespace_name} -> {namespace.id}")

    image = next(
        (
            img
            for img in client.list_images()
            if img.namespace_id == namespace.id and img.name == image_name
        ),
        None,
    )
    if image is None:
        raise create_no_such_image_error(namespace_name, image_name)
    logger.debug(f"Resolved image {image_name} -> {image.id}")

    return namespace, image
