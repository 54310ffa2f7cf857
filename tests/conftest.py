"""
Pytest configuration file.

Sets up the Python path so test files can import from the python/ directory,
and provides factories for registry records.
"""
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add python directory to path for all tests
_python_dir = Path(__file__).parent.parent / 'python'
_python_dir_abs = str(_python_dir.absolute())
if _python_dir_abs not in sys.path:
    sys.path.insert(0, _python_dir_abs)

from registry_prune.models import Image, ImageTag, Namespace, Status

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_tag():
    """Factory for ImageTag; ``age`` is how long ago the tag was updated"""
    def _make(name, age=timedelta(0), tag_id=None, image_id="i1", digest=None):
        updated = NOW - age
        return ImageTag(
            id=tag_id or f"tag-{name}",
            name=name,
            image_id=image_id,
            digest=digest or f"sha256:{name}",
            status=Status.READY,
            created_at=updated,
            updated_at=updated,
        )
    return _make


@pytest.fixture
def prod_namespace():
    return Namespace(id="n1", name="prod")


@pytest.fixture
def api_image():
    return Image(id="i1", name="api", namespace_id="n1")
