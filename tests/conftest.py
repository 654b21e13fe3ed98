import io
import os
import tempfile

import pytest
from PIL import Image

from curation.db import Database


@pytest.fixture
def temp_db():
    """Provide a temporary database path."""
    with tempfile.NamedTemporaryFile(suffix='.db', delete=False) as f:
        yield f.name
    os.unlink(f.name)


@pytest.fixture
def db():
    """Provide an initialised Database instance backed by a temp file."""
    with tempfile.NamedTemporaryFile(suffix='.db', delete=False) as f:
        path = f.name
    database = Database(path)
    database.init_schema()
    yield database
    database.close()
    os.unlink(path)


@pytest.fixture
def sample_listings():
    """Provide a small listing corpus for store and migration tests."""
    return [
        {
            'id': 'home-1',
            'title': 'Cozy updated starter home',
            'description': None,
            'city': 'Orlando',
            'price': 250000,
            'bedrooms': 3,
            'listing_type': None,
            'tags': [],
            'open_house_paid': True,
        },
        {
            'id': 'home-2',
            'title': 'Lakefront cabin with dock',
            'description': 'Quiet cove on the lake',
            'city': 'Winter Park',
            'price': 650000,
            'bedrooms': 2,
            'listing_type': None,
            'tags': ['#Old'],
            'open_house_paid': False,
        },
        {
            'id': 'home-3',
            'title': 'Spacious home with garage',
            'description': None,
            'city': 'Tampa',
            'price': 1800,
            'bedrooms': 4,
            'listing_type': 'rental',
            'tags': ['#OpenHouse'],
            'open_house_paid': True,
        },
    ]


@pytest.fixture
def sample_config():
    """Provide sample configuration for tests."""
    return {
        'moderation': {
            'allowed_domains': ['housers.app', 'example.org'],
            'caps_ratio': 0.8,
            'vowel_stripped_matching': False,
        },
        'images': {
            'max_bytes': 5 * 1024 * 1024,
            'allowed_extensions': ['jpg', 'png'],
        },
        'tags': {
            'max_tags': 3,
        },
        'keywords': {
            'Pool': ['plunge pool'],
            'Solar': ['solar panels'],
        },
    }


def make_image_bytes(width: int, height: int, fmt: str = 'JPEG', size: int = 0) -> bytes:
    """Encode a solid-colour image, zero-padded up to size bytes.

    Decoders ignore trailing bytes after the end-of-image marker, so padding
    gives exact file sizes without touching the pixel dimensions.
    """
    buf = io.BytesIO()
    Image.new('RGB', (width, height), (200, 180, 150)).save(buf, fmt)
    data = buf.getvalue()
    if len(data) < size:
        data += b'\x00' * (size - len(data))
    return data


@pytest.fixture
def image_bytes():
    """Factory fixture for synthetic image files."""
    return make_image_bytes
