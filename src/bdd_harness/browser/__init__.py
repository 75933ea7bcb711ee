"""Playwright session, diagnostics and page helpers."""

from .capture import DiagnosticCaptureManager
from .page_utils import PageUtils
from .session import (
    BrowserSessionManager,
    LaunchConfig,
    ScenarioContext,
    VideoSpec,
)

__all__ = [
    'BrowserSessionManager',
    'DiagnosticCaptureManager',
    'LaunchConfig',
    'PageUtils',
    'ScenarioContext',
    'VideoSpec',
]
