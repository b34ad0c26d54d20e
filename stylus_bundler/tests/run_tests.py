#!/usr/bin/env python
"""Test runner for Stylus Bundler."""

import sys
import pytest
from pathlib import Path


def main():
    """Run tests with coverage reporting."""
    # Get the project root directory
    project_root = Path(__file__).parent.parent.parent

    # Add project root to Python path
    sys.path.insert(0, str(project_root))

    # Configure pytest arguments
    args = [
        '--verbose',
        '--cov=stylus_bundler',
        '--cov-report=term-missing',
        '--cov-report=xml',
        '--junitxml=test-results.xml',
        '--timeout=30',
        str(Path(__file__).parent),
    ] + sys.argv[1:]

    # Run tests
    return pytest.main(args)


if __name__ == '__main__':
    sys.exit(main())
