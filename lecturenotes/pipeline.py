"""
lecturenotes.pipeline - End-to-end lecture processing for one request.

Stages run strictly in order:

    RECEIVED -> AUDIO_EXTRACTED -> FRAMES_EXTRACTED -> OCR_DONE
             -> TRANSCRIBED -> NOTES_GENERATED -> RENDERED -> UPLOADED -> DONE

Any stage error ends the run in FAILED with a generic message; details
go to the log only. Every temporary resource is registered on an ExitStack
as soon as it is created, so it is released on every exit path. A failed
release is logged and never replaces the run's result. The orchestrator
never retries a stage.
"""

from __future__ import annotations

import shutil
import time
from collections.abc import Callable
from contextlib import ExitStack
from pathlib import Path
from typing import Any

from lecturenotes.exceptions import CleanupWarning, LectureNotesError, PipelineTimeoutError
from lecturenotes.extract.media import extract_audio, extract_frames
from lecturenotes.io import write_text
from lecturenotes.logging import get_logger
from lecturenotes.models import PipelineResult, PipelineStage, SourceVideo
from lecturenotes.ocr.engine import OCREngine, extract_visual_text
from lecturenotes.storage import notes_key

log = get_logger("pipeline")

GENERIC_ERROR = "Error processing lecture."


def release_path(path: Path) -> None:
    """Delete a file or directory tree, logging instead of raising."""
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        elif path.exists() or path.is_symlink():
            path.unlink()
    except Exception as e:
        log.warning("%s", CleanupWarning(f"Cleanup skipped for {path}: {e}"))


class PipelineOrchestrator:
    """Sequence the extraction, transcription, notes and delivery stages."""

    def __init__(
        self,
        transcriber: Any,
        notes_generator: Any,
        renderer: Any,
        storage: Any,
        ocr_engine: OCREngine,
        notifier: Any = None,
        work_dir: Path = Path("work"),
        output_dir: Path = Path("output"),
        frame_interval: float = 5.0,
        language_code: str = "en-US",
        languages: list[str] | None = None,
        retain_local_artifacts: bool = False,
        deadline_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.transcriber = transcriber
        self.notes_generator = notes_generator
        self.renderer = renderer
        self.storage = storage
        self.ocr_engine = ocr_engine
        self.notifier = notifier
        self.work_dir = work_dir
        self.output_dir = output_dir
        self.frame_interval = frame_interval
        self.language_code = language_code
        self.languages = list(languages or [])
        self.retain_local_artifacts = retain_local_artifacts
        self.deadline_seconds = deadline_seconds
        self.clock = clock

    def _advance(self, stage: PipelineStage, deadline: float | None) -> PipelineStage:
        log.info("Stage: %s", stage.value)
        if deadline is not None and stage is not PipelineStage.UPLOADED and self.clock() > deadline:
            raise PipelineTimeoutError(f"Deadline exceeded after stage {stage.value}")
        return stage

    def _transcribe(self, audio: Any, deadline: float | None) -> str:
        if len(self.languages) > 1:
            return self.transcriber.transcribe_multi(audio, self.languages, deadline=deadline)
        code = self.languages[0] if self.languages else self.language_code
        return self.transcriber.transcribe(audio, code, deadline=deadline)

    def _notify(self, email: str | None, url: str) -> None:
        if not email or self.notifier is None:
            return
        try:
            self.notifier.send(email, url)
        except Exception as e:
            log.warning("Notification to %s failed: %s", email, e)

    def run(
        self,
        video_path: Path,
        email: str | None = None,
        on_complete: Callable[[PipelineResult], None] | None = None,
        delete_source: bool = True,
    ) -> PipelineResult:
        """Process one uploaded lecture video.

        The source video is owned by the run and deleted when it ends
        unless delete_source is False.

        Args:
            video_path: Uploaded video
            email: Optional address to send the PDF link to
            on_complete: Called with the successful result before local
                artifacts are cleaned up
            delete_source: Remove the video when the run ends

        Returns:
            PipelineResult (never raises for pipeline errors)
        """
        stage = PipelineStage.RECEIVED
        name = video_path.stem
        deadline = self.clock() + self.deadline_seconds if self.deadline_seconds else None
        kept: set[Path] = set()

        def release_unless_kept(path: Path) -> None:
            if path not in kept:
                release_path(path)

        with ExitStack() as resources:
            if delete_source:
                resources.callback(release_path, video_path)
            try:
                video = SourceVideo.from_path(video_path)
                log.info("Processing %s (%d bytes, %s)", video.path.name, video.size_bytes, video.mime_type)

                audio_path = self.work_dir / f"{name}.wav"
                resources.callback(release_path, audio_path)
                audio = extract_audio(video.path, audio_path)
                stage = self._advance(PipelineStage.AUDIO_EXTRACTED, deadline)

                frames_dir = self.work_dir / "frames" / name
                resources.callback(release_path, frames_dir)
                frames = extract_frames(video.path, frames_dir, self.frame_interval)
                stage = self._advance(PipelineStage.FRAMES_EXTRACTED, deadline)

                visual_text = extract_visual_text(frames, self.ocr_engine)
                stage = self._advance(PipelineStage.OCR_DONE, deadline)

                transcript = self._transcribe(audio, deadline)
                stage = self._advance(PipelineStage.TRANSCRIBED, deadline)

                notes = self.notes_generator.generate(transcript, visual_text)
                stage = self._advance(PipelineStage.NOTES_GENERATED, deadline)

                pdf_path = self.output_dir / f"{name}.pdf"
                notes_path = self.output_dir / f"{name}.md"
                resources.callback(release_unless_kept, pdf_path)
                resources.callback(release_unless_kept, notes_path)
                if self.retain_local_artifacts:
                    write_text(notes_path, notes.markdown)
                self.renderer.render(notes.markdown, pdf_path)
                stage = self._advance(PipelineStage.RENDERED, deadline)

                stored = self.storage.upload_file(pdf_path, notes_key(name), "application/pdf")
                stage = self._advance(PipelineStage.UPLOADED, deadline)
            except Exception as e:
                if isinstance(e, LectureNotesError):
                    log.error("Pipeline failed after %s: %s", stage.value, e)
                else:
                    log.exception("Unexpected pipeline error after %s", stage.value)
                return PipelineResult(
                    success=False,
                    error_message=GENERIC_ERROR,
                    stage=PipelineStage.FAILED,
                )

            if self.retain_local_artifacts:
                kept.update({pdf_path, notes_path})

            result = PipelineResult(
                success=True,
                artifact_url=stored.url,
                stage=PipelineStage.DONE,
                provider=notes.provider,
                local_pdf=pdf_path if self.retain_local_artifacts else None,
            )
            log.info("Notes ready at %s (provider: %s)", stored.url, notes.provider or "none")

            if on_complete is not None:
                try:
                    on_complete(result)
                except Exception as e:
                    log.warning("Completion callback failed: %s", e)
            self._notify(email, stored.url)
            return result


def build_orchestrator(config: Any) -> PipelineOrchestrator:
    """Construct the production pipeline from LectureNotesConfig.

    Service clients are created once here and shared by every request.
    """
    from lecturenotes.llm.notes import NotesGenerator
    from lecturenotes.llm.providers import build_providers
    from lecturenotes.notify import EmailNotifier
    from lecturenotes.ocr.engine import TesseractEngine
    from lecturenotes.render.pdf import PDFRenderer
    from lecturenotes.storage import S3Storage
    from lecturenotes.transcribe.engine import SpeechTranscriber
    from lecturenotes.transcribe.transliterate import LLMTransliterator

    storage = S3Storage(config.s3_bucket, config.aws_region)
    providers = build_providers(config)
    transcriber = SpeechTranscriber.from_config(
        config,
        storage=storage,
        transliterator=LLMTransliterator(providers[0]),
    )

    settings = config.pipeline
    return PipelineOrchestrator(
        transcriber=transcriber,
        notes_generator=NotesGenerator(providers),
        renderer=PDFRenderer.from_config(config),
        storage=storage,
        ocr_engine=TesseractEngine(config.ocr.language),
        notifier=EmailNotifier.from_config(config),
        work_dir=settings.work_dir,
        output_dir=settings.output_dir,
        frame_interval=config.frames.interval_seconds,
        language_code=config.transcribe.language_code,
        languages=config.transcribe.languages,
        retain_local_artifacts=settings.retain_local_artifacts,
        deadline_seconds=settings.deadline_seconds,
    )
