"""Pytest configuration for Stylus Bundler tests."""

import logging
import re
from pathlib import Path

import pytest

from ..core.options import Bundle, BundleOptions
from ..core.pipeline import compile_bundle
from ..core.resolver import Fragment
from ..utils.config import SOURCE_EXTENSIONS

# Configure logging
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


def normalize_content(text: str) -> str:
    """Drop all whitespace so pretty output can be compared in one line."""
    return re.sub(r'\s+', '', text)


def write_scheme(root: Path, scheme: dict) -> None:
    """Create files from a nested ``{name: content or dict}`` mapping."""
    root.mkdir(parents=True, exist_ok=True)
    for name, content in scheme.items():
        path = root / name
        if isinstance(content, dict):
            write_scheme(path, content)
        elif isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding='utf-8')


@pytest.fixture
def project(tmp_path):
    """Return a writer that lays a scheme out on ``tmp_path``."""
    def _project(scheme: dict) -> Path:
        write_scheme(tmp_path, scheme)
        return tmp_path
    return _project


@pytest.fixture
def build(tmp_path):
    """Compile every fragment of ``blocks/`` into ``bundle/bundle.css``.

    Comments are off unless asked for; non-compressed output is returned
    with all whitespace removed.
    """
    def _build(scheme: dict, **options) -> str:
        layout = {'blocks': {}, 'bundle': {}}
        layout.update(scheme)
        write_scheme(tmp_path, layout)

        blocks = tmp_path / 'blocks'
        fragments = [
            Fragment(str(path)) for path in sorted(blocks.iterdir())
            if path.is_file() and path.suffix in SOURCE_EXTENSIONS
        ]
        settings = {'comments': False}
        settings.update(options)
        output = compile_bundle(
            fragments,
            Bundle('bundle', str(tmp_path / 'bundle')),
            BundleOptions.from_dict(settings),
        )
        return output.css if settings.get('compress') else normalize_content(output.css)
    return _build


@pytest.fixture(scope='session')
def block_image():
    """Return the bytes of the sample image used by the url() tests."""
    return b'block image'
