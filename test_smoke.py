import importlib.util

import pytest


async def test_packages_importable():
    """
    A basic smoke test to verify that both packages are discoverable
    via pythonpath.
    """
    for name in ("scout_core", "scout_cli.run"):
        if importlib.util.find_spec(name) is None:
            pytest.fail(f"Failed to import {name}")
