"""Shared fixtures for fnmdesk tests."""

from pathlib import Path
from unittest.mock import patch

import pytest

from fnmdesk.core.platform_profile import PlatformKind, make_platform_profile


@pytest.fixture
def linux_profile():
    return make_platform_profile(PlatformKind.LINUX, "x86_64")


@pytest.fixture
def macos_profile():
    return make_platform_profile(PlatformKind.MACOS, "arm64")


@pytest.fixture
def windows_profile():
    return make_platform_profile(PlatformKind.WINDOWS, "AMD64")


@pytest.fixture
def other_profile():
    return make_platform_profile(PlatformKind.OTHER, "riscv64")


@pytest.fixture
def linux_env():
    return {"HOME": "/home/dev", "PATH": "/usr/bin:/bin"}


@pytest.fixture
def fake_fnm():
    """Patches executable resolution in the node manager to a fixed path."""
    with patch(
        "fnmdesk.managers.node_manager.resolve_fnm_path",
        return_value=Path("/opt/fnm/fnm"),
    ) as resolver:
        yield resolver


@pytest.fixture(scope="session")
def qapp():
    from PySide6.QtCore import QCoreApplication

    app = QCoreApplication.instance() or QCoreApplication([])
    yield app
