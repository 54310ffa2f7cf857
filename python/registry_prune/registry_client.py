"""
Client for the Scaleway container registry API.

Wraps a requests Session that carries the API token on every call. Each
public method returns model objects or raises a PruneError of kind API: for
non-2xx responses the registry's ``{"message": ...}`` body becomes the error
message, transport failures and undecodable bodies are reported the same way.
"""

from typing import Any, Dict, List, Optional

import requests

from registry_prune.error_utils import create_api_error
from registry_prune.logging_utils import get_logger
from registry_prune.models import Image, ImageTag, Namespace

logger = get_logger(__name__)

DEFAULT_API_URL = "https://api.scaleway.com/registry/v1"
DEFAULT_TIMEOUT = 30
TAG_PAGE_SIZE = 100


def region_endpoint(region: str, api_url: str = DEFAULT_API_URL) -> str:
    """Build the region-scoped base URL for registry calls"""
    return f"{api_url.rstrip('/')}/regions/{region}"


class RegistryClient:
    """Scaleway registry API client"""

    def __init__(
        self,
        auth_token: str,
        region: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        endpoint: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        """Initialize RegistryClient

        Args:
            auth_token: Scaleway secret key, sent as X-Auth-Token
            region: Region hosting the registry (e.g. "fr-par")
            api_url: Registry API root (default: public Scaleway API)
            timeout: Per-request timeout in seconds
            endpoint: Full base URL, overrides api_url/region (used against test servers)
            session: Optional preconfigured requests Session
        """
        self.region = region
        self.endpoint = (endpoint or region_endpoint(region, api_url)).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"X-Auth-Token": auth_token, "Accept": "application/json"})

    def _request(self, method: str, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        url = f"{self.endpoint}{path}"
        logger.debug(f"{method} {url} params={params}")

        try:
            response = self.session.request(method, url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise create_api_error(f"HTTP client error: {e}", url=url) from e

        if not response.ok:
            raise create_api_error(self._error_message(response), status_code=response.status_code, url=url)

        try:
            return response.json()
        except ValueError as e:
            raise create_api_error(f"Invalid JSON in response from {url}: {e}", status_code=response.status_code, url=url) from e

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return f"HTTP {response.status_code}: {response.text.strip() or response.reason}"
        if isinstance(body, dict) and isinstance(body.get("message"), str):
            return body["message"]
        return f"HTTP {response.status_code}: {body}"

    def _get_list(self, path: str, key: str, model, params: Optional[Dict[str, str]] = None) -> List[Any]:
        body = self._request("GET", path, params=params)
        try:
            return [model.from_api(item) for item in body[key]]
        except (KeyError, TypeError, ValueError) as e:
            raise create_api_error(f"Unexpected response from {path}: {e}", url=f"{self.endpoint}{path}") from e

    def list_namespaces(self) -> List[Namespace]:
        """Return the namespaces the token has access to"""
        return self._get_list("/namespaces", "namespaces", Namespace)

    def get_namespace(self, namespace_id: str) -> Namespace:
        """Return details (including size) for one namespace"""
        path = f"/namespaces/{namespace_id}"
        body = self._request("GET", path)
        try:
            return Namespace.from_api(body)
        except (KeyError, TypeError, ValueError) as e:
            raise create_api_error(f"Unexpected response from {path}: {e}", url=f"{self.endpoint}{path}") from e

    def list_images(self) -> List[Image]:
        """Return all images accessible to the token, across namespaces"""
        return self._get_list("/images", "images", Image)

    def list_image_tags(self, image_id: str) -> List[ImageTag]:
        """Return the tags of one image (first page of TAG_PAGE_SIZE only)"""
        return self._get_list(
            f"/images/{image_id}/tags", "tags", ImageTag, params={"page_size": str(TAG_PAGE_SIZE)}
        )

    def delete_tag(self, tag_id: str, force: bool = False) -> ImageTag:
        """Delete an image tag and return it

        The registry refuses to delete a tag whose digest is shared with
        another tag unless ``force`` is set.
        """
        path = f"/tags/{tag_id}"
        params = {"force": "true"} if force else None
        body = self._request("DELETE", path, params=params)
        try:
            return ImageTag.from_api(body)
        except (KeyError, TypeError, ValueError) as e:
            raise create_api_error(f"Unexpected response from {path}: {e}", url=f"{self.endpoint}{path}") from e
