"""Diagnostic capture for finished scenarios.

When a scenario fails, its screenshot, video and trace archive are
persisted under the artifacts directory and attached to the report.
Passing scenarios only get their trace discarded. Every capture step is
guarded on its own: one failure is logged and the remaining steps, and
the browser teardown, still run.

Playwright finalizes a video file only once its page is closed, so the
video path is resolved before teardown and the file is moved and
attached after it.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from ..observability.logging import get_logger
from ..reporting.attachments import (
    CONTENT_TYPES,
    ArtifactKind,
    Attacher,
    DiagnosticArtifact,
)
from ..scenario import ScenarioOutcome, safe_artifact_name
from ..settings import HarnessSettings
from .session import ScenarioContext

logger = get_logger(__name__)


class DiagnosticCaptureManager:
    """Capture failure artifacts and release the scenario's browser."""

    def __init__(self, settings: HarnessSettings) -> None:
        self._settings = settings

    def capture_and_release(
        self,
        scenario_name: str,
        outcome: ScenarioOutcome,
        session: ScenarioContext,
        attacher: Attacher,
    ) -> tuple[DiagnosticArtifact, ...]:
        """Persist and attach artifacts for *session*, then close it.

        Returns the artifacts that were attached; always empty unless
        *outcome* is :attr:`ScenarioOutcome.FAILED`.
        """
        safe = safe_artifact_name(scenario_name)
        failed = outcome is ScenarioOutcome.FAILED
        artifacts: list[DiagnosticArtifact] = []
        video_source: Path | None = None

        try:
            if failed:
                shot = self._capture_screenshot(session, safe, attacher)
                if shot is not None:
                    artifacts.append(shot)
                video_source = self._resolve_video(session)

            trace = self._stop_tracing(session, safe, failed, attacher)
            if trace is not None:
                artifacts.append(trace)
        finally:
            session.close()

        if video_source is not None:
            video = self._persist_video(video_source, safe, attacher)
            if video is not None:
                artifacts.append(video)

        logger.info(
            'diagnostics_captured',
            outcome=outcome.value,
            attached=[a.to_dict() for a in artifacts],
        )
        return tuple(artifacts)

    def _capture_screenshot(
        self,
        session: ScenarioContext,
        safe: str,
        attacher: Attacher,
    ) -> DiagnosticArtifact | None:
        try:
            self._settings.screenshots_dir.mkdir(parents=True, exist_ok=True)
            path = self._settings.screenshots_dir / f'{safe}.png'
            body = session.page.screenshot(path=str(path))
            return _attach(attacher, ArtifactKind.SCREENSHOT, 'screenshot', body, path)
        except Exception as exc:
            logger.warning('screenshot_capture_failed', error=str(exc))
            return None

    def _resolve_video(self, session: ScenarioContext) -> Path | None:
        if not session.video_enabled:
            return None
        try:
            video = session.page.video
            if video is None:
                logger.info('video_not_recorded')
                return None
            source = Path(video.path())
        except Exception as exc:
            logger.warning('video_path_unavailable', error=str(exc))
            return None
        logger.info('video_recording_found', path=str(source))
        return source

    def _persist_video(
        self,
        source: Path,
        safe: str,
        attacher: Attacher,
    ) -> DiagnosticArtifact | None:
        if self._settings.skip_local_video_save:
            logger.info(
                'video_local_save_skipped',
                path=str(source),
                reason='ci_artifact_policy',
            )
            return None
        try:
            if not source.exists():
                logger.info('video_file_missing', path=str(source))
                return None
            target = self._settings.videos_dir / f'{safe}.webm'
            target.parent.mkdir(parents=True, exist_ok=True)
            if source.resolve() != target.resolve():
                shutil.move(str(source), str(target))
            return _attach(attacher, ArtifactKind.VIDEO, 'video', target.read_bytes(), target)
        except Exception as exc:
            logger.warning('video_attach_failed', error=str(exc))
            return None

    def _stop_tracing(
        self,
        session: ScenarioContext,
        safe: str,
        failed: bool,
        attacher: Attacher,
    ) -> DiagnosticArtifact | None:
        if not session.tracing_active:
            return None
        # Never attempt a second stop, even if this one raises.
        session.tracing_active = False
        try:
            if not failed:
                session.context.tracing.stop()
                return None

            self._settings.traces_dir.mkdir(parents=True, exist_ok=True)
            path = self._settings.traces_dir / f'{safe}.zip'
            session.context.tracing.stop(path=str(path))
            logger.info('trace_saved', path=str(path))
            if not path.exists():
                logger.info('trace_file_missing', path=str(path))
                return None
            return _attach(attacher, ArtifactKind.TRACE, f'{safe}.zip', path.read_bytes(), path)
        except Exception as exc:
            logger.warning('trace_stop_failed', error=str(exc))
            return None


# ── Helpers ────────────────────────────────────────────────────────


def _attach(
    attacher: Attacher,
    kind: ArtifactKind,
    name: str,
    body: bytes,
    path: Path | None,
) -> DiagnosticArtifact:
    content_type, extension = CONTENT_TYPES[kind]
    attacher.attach(body, name=name, content_type=content_type, extension=extension)
    return DiagnosticArtifact(
        kind=kind,
        name=name,
        content_type=content_type,
        size_bytes=len(body),
        file_path=str(path) if path is not None else None,
    )
