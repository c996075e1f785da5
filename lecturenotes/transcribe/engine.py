"""
lecturenotes.transcribe.engine - AWS Transcribe job runner.

Uploads the extracted audio to S3, starts a transcription job and polls it
to completion with tenacity. Polling is bounded: the delay grows by a fixed
factor up to a ceiling, and running out of attempts (or hitting the request
deadline) raises TranscriptionTimeoutError rather than waiting forever.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable
from enum import Enum
from typing import Any

from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    before_sleep_log,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from lecturenotes.exceptions import TranscriptionError, TranscriptionTimeoutError
from lecturenotes.logging import get_logger
from lecturenotes.models import AudioTrack
from lecturenotes.storage import audio_key
from lecturenotes.transcribe.transliterate import Transliterator, transliterate_safely

log = get_logger("transcribe")


class JobStatus(str, Enum):
    SUBMITTED = "SUBMITTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


# AWS reports a freshly created job as QUEUED
_AWS_STATUS = {
    "QUEUED": JobStatus.SUBMITTED,
    "IN_PROGRESS": JobStatus.IN_PROGRESS,
    "COMPLETED": JobStatus.COMPLETED,
    "FAILED": JobStatus.FAILED,
}

TERMINAL = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})


def parse_job_status(response: dict[str, Any]) -> JobStatus:
    """Map a GetTranscriptionJob response onto JobStatus."""
    raw = response.get("TranscriptionJob", {}).get("TranscriptionJobStatus", "")
    return _AWS_STATUS.get(raw, JobStatus.IN_PROGRESS)


def extract_transcript_text(payload: dict[str, Any]) -> str:
    """Pull the transcript text out of an AWS Transcribe result document.

    A result with no transcripts (silent audio) yields an empty string.

    Raises:
        TranscriptionError: If the payload does not look like a result document
    """
    results = payload.get("results") if isinstance(payload, dict) else None
    if not isinstance(results, dict):
        raise TranscriptionError("Transcript payload has no 'results' section")
    transcripts = results.get("transcripts") or []
    if not transcripts:
        return ""
    return str(transcripts[0].get("transcript", "")).strip()


def default_fetch(uri: str) -> dict[str, Any]:
    """Download a transcript result document."""
    import requests

    response = requests.get(uri, timeout=60)
    response.raise_for_status()
    return response.json()


class SpeechTranscriber:
    """Run AWS Transcribe jobs for an extracted audio track."""

    def __init__(
        self,
        storage: Any,
        client: Any = None,
        region: str | None = None,
        fetch: Callable[[str], dict[str, Any]] = default_fetch,
        poll_interval: float = 5.0,
        max_interval: float = 30.0,
        backoff: float = 1.5,
        max_attempts: int = 180,
        transliterator: Transliterator | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if client is None:
            import boto3

            client = boto3.client("transcribe", region_name=region)
        self.storage = storage
        self.client = client
        self.fetch = fetch
        self.poll_interval = poll_interval
        self.max_interval = max_interval
        self.backoff = backoff
        self.max_attempts = max_attempts
        self.transliterator = transliterator
        self.sleep = sleep
        self.clock = clock

    @classmethod
    def from_config(
        cls,
        config: Any,
        storage: Any,
        transliterator: Transliterator | None = None,
    ) -> SpeechTranscriber:
        """Create a transcriber from LectureNotesConfig."""
        settings = config.transcribe
        return cls(
            storage=storage,
            region=config.aws_region,
            poll_interval=settings.poll_interval,
            max_interval=settings.max_interval,
            backoff=settings.backoff,
            max_attempts=settings.max_attempts,
            transliterator=transliterator if settings.transliterate else None,
        )

    def upload_audio(self, audio: AudioTrack) -> str:
        """Make the audio reachable by the transcription service."""
        try:
            stored = self.storage.upload_file(audio.path, audio_key(audio.path.stem), "audio/wav")
        except Exception as e:
            raise TranscriptionError(f"Could not stage audio for transcription: {e}") from e
        return stored.uri

    def submit(self, media_uri: str, language_code: str) -> str:
        """Start a transcription job and return its name.

        No output bucket is named, so the service keeps the result and
        reports a presigned TranscriptFileUri that plain HTTP can read.
        """
        job_name = f"lectureTranscription-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"
        params: dict[str, Any] = {
            "TranscriptionJobName": job_name,
            "LanguageCode": language_code,
            "Media": {"MediaFileUri": media_uri},
            "MediaFormat": "wav",
        }
        try:
            self.client.start_transcription_job(**params)
        except Exception as e:
            raise TranscriptionError(f"Failed to start transcription job: {e}") from e
        log.info("Started transcription job %s (%s)", job_name, language_code)
        return job_name

    def _check_status(self, job_name: str) -> dict[str, Any]:
        try:
            response = self.client.get_transcription_job(TranscriptionJobName=job_name)
        except Exception as e:
            raise TranscriptionError(f"Status check for {job_name} failed: {e}") from e
        log.debug("Job %s: %s", job_name, parse_job_status(response).value)
        return response

    def wait_for_job(self, job_name: str, deadline: float | None = None) -> str:
        """Poll a job until it completes and return the transcript URI.

        The wait before each check grows by the backoff factor up to
        max_interval. A failing status check is not retried.

        Args:
            job_name: Name returned by submit()
            deadline: Optional clock() value after which polling stops

        Raises:
            TranscriptionError: If the job fails or a status check errors
            TranscriptionTimeoutError: If attempts or the deadline run out
        """
        wait = wait_exponential(
            multiplier=self.poll_interval,
            exp_base=self.backoff,
            max=self.max_interval,
        )

        def past_deadline(retry_state: RetryCallState) -> bool:
            return deadline is not None and self.clock() + wait(retry_state) > deadline

        retrying = Retrying(
            retry=retry_if_result(lambda response: parse_job_status(response) not in TERMINAL),
            wait=wait,
            stop=stop_after_attempt(self.max_attempts) | past_deadline,
            sleep=self.sleep,
            before_sleep=before_sleep_log(log, logging.DEBUG),
        )
        try:
            response = retrying(self._check_status, job_name)
        except RetryError as e:
            if e.last_attempt.attempt_number >= self.max_attempts:
                raise TranscriptionTimeoutError(
                    f"Transcription job {job_name} not finished after {self.max_attempts} checks"
                ) from e
            raise TranscriptionTimeoutError(
                f"Transcription job {job_name} still running at request deadline"
            ) from e

        job = response["TranscriptionJob"]
        if parse_job_status(response) is JobStatus.FAILED:
            reason = job.get("FailureReason", "unknown reason")
            raise TranscriptionError(f"Transcription job {job_name} failed: {reason}")
        uri = job.get("Transcript", {}).get("TranscriptFileUri")
        if not uri:
            raise TranscriptionError(f"Job {job_name} completed without a transcript URI")
        return uri

    def fetch_transcript(self, uri: str) -> str:
        try:
            payload = self.fetch(uri)
        except Exception as e:
            raise TranscriptionError(f"Could not download transcript: {e}") from e
        return extract_transcript_text(payload)

    def _run_job(self, media_uri: str, language_code: str, deadline: float | None) -> str:
        job_name = self.submit(media_uri, language_code)
        uri = self.wait_for_job(job_name, deadline=deadline)
        return self.fetch_transcript(uri)

    def transcribe(
        self,
        audio: AudioTrack,
        language_code: str = "en-US",
        deadline: float | None = None,
    ) -> str:
        """Transcribe an audio track in one language.

        Non-Latin text is transliterated when a transliterator is configured.

        Returns:
            Transcript text (possibly empty)
        """
        media_uri = self.upload_audio(audio)
        transcript = self._run_job(media_uri, language_code, deadline)
        log.info("Transcript obtained (%d chars)", len(transcript))
        return self._finish(transcript)

    def transcribe_multi(
        self,
        audio: AudioTrack,
        language_codes: list[str],
        deadline: float | None = None,
    ) -> str:
        """Transcribe in several languages and merge the results.

        Jobs run one after another. When every job succeeds the transcripts
        are concatenated under "[<language>]" labels; when only one does,
        its text is returned as-is. Non-Latin results are transliterated
        when a transliterator is configured.

        Raises:
            TranscriptionError: If every language fails (the last error)
        """
        if not language_codes:
            raise TranscriptionError("No transcription languages given")
        if len(language_codes) == 1:
            return self.transcribe(audio, language_codes[0], deadline)

        media_uri = self.upload_audio(audio)
        results: list[tuple[str, str]] = []
        last_error: TranscriptionError | None = None
        for code in language_codes:
            try:
                text = self._run_job(media_uri, code, deadline)
            except TranscriptionTimeoutError:
                raise
            except TranscriptionError as e:
                log.warning("Transcription in %s failed: %s", code, e)
                last_error = e
                continue
            results.append((code, self._finish(text)))

        if not results:
            raise last_error or TranscriptionError("No transcription language succeeded")
        if len(results) == 1:
            return results[0][1]
        return "\n\n".join(f"[{code}]\n{text}" for code, text in results)

    def _finish(self, text: str) -> str:
        return transliterate_safely(text, self.transliterator)
