# tests/conftest.py
"""
Pytest configuration and fixtures.
Adds src to sys.path so `import viewercore` works without installing.
"""

import sys
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
src_root = project_root / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))

from viewercore.extensions.default import DefaultExtension  # noqa: E402
from viewercore.infrastructure.diagnostics import InMemoryDiagnostics  # noqa: E402
from viewercore.modes import create_dental_mode  # noqa: E402
from viewercore.session import ViewerSession, create_session  # noqa: E402


@pytest.fixture
def diagnostics():
    return InMemoryDiagnostics()


@pytest.fixture
def session(diagnostics):
    """Empty, not-yet-activated session."""
    s = ViewerSession.empty(diagnostics=diagnostics)
    yield s
    s.close()


@pytest.fixture
def viewer(diagnostics):
    """Session with the default extension and dental mode, activated."""
    s = create_session(
        extensions=[DefaultExtension()],
        modes=[create_dental_mode()],
        diagnostics=diagnostics,
    )
    yield s
    s.close()
