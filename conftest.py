"""Root pytest configuration with test type selection."""

import pytest


def pytest_addoption(parser):
    """Add custom command-line options."""
    group = parser.getgroup("RSS Aggregator Testing")

    group.addoption(
        "--test-type",
        choices=["unit", "integration", "all"],
        default=None,
        help="Type of tests to run (unit, integration, all)",
    )


def pytest_configure(config):
    """Register custom markers."""
    markers = [
        "integration: marks tests as integration tests",
        "unit: marks tests as unit tests",
    ]

    for marker in markers:
        config.addinivalue_line("markers", marker)


def pytest_collection_modifyitems(config, items):
    """Modify test collection based on --test-type option."""
    test_type = config.getoption("--test-type")

    if not test_type:
        return

    if test_type == "unit":
        skip_integration = pytest.mark.skip(reason="Running unit tests only (--test-type=unit)")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)

    elif test_type == "integration":
        skip_unit = pytest.mark.skip(reason="Running integration tests only (--test-type=integration)")
        for item in items:
            if "integration" not in item.keywords:
                item.add_marker(skip_unit)

    # test_type == "all" runs everything (no filtering)
