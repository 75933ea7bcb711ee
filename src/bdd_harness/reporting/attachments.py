"""Attach diagnostic artifacts to the test report.

The lifecycle code only talks to the :class:`Attacher` protocol, so the
report backend can be swapped (and recorded in tests).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import allure


class ArtifactKind(str, Enum):
    """Type of diagnostic artifact."""

    SCREENSHOT = 'screenshot'
    VIDEO = 'video'
    TRACE = 'trace'


CONTENT_TYPES = {
    ArtifactKind.SCREENSHOT: ('image/png', 'png'),
    ArtifactKind.VIDEO: ('video/webm', 'webm'),
    ArtifactKind.TRACE: ('application/zip', 'zip'),
}


@dataclass(frozen=True, slots=True)
class DiagnosticArtifact:
    """A captured artifact that was attached to a failed scenario."""

    kind: ArtifactKind
    name: str
    content_type: str
    size_bytes: int
    file_path: str | None = None

    def to_dict(self) -> dict:
        return {
            'kind': self.kind.value,
            'name': self.name,
            'content_type': self.content_type,
            'size_bytes': self.size_bytes,
            'file': self.file_path,
        }


class Attacher(Protocol):
    """Anything that can attach raw bytes to the current test's report."""

    def attach(
        self,
        body: bytes,
        *,
        name: str,
        content_type: str,
        extension: str,
    ) -> None: ...


class AllureAttacher:
    """Attach through ``allure.attach`` to the running test's result.

    Without an active Allure plugin the call is a no-op.
    """

    def attach(
        self,
        body: bytes,
        *,
        name: str,
        content_type: str,
        extension: str,
    ) -> None:
        allure.attach(
            body,
            name=name,
            attachment_type=content_type,
            extension=extension,
        )
