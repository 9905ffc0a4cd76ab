import pytest

from nvidia_exporter.cli import build_registry


@pytest.fixture
def registry():
    return build_registry()
