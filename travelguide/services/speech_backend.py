# travelguide/services/speech_backend.py
# Narration backend that renders speech locally through pyttsx3.

import asyncio
import logging
import queue
import re
import threading
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

import pyttsx3

from travelguide.core.config import settings
from travelguide.models.dto import ResolvedSpeech

logger = logging.getLogger(__name__)


def _voice_languages(voice) -> List[str]:
    """Normalized language tags a pyttsx3 voice declares (e.g. 'sv', 'en-gb')."""
    tags: List[str] = []
    for lang in getattr(voice, "languages", None) or []:
        if isinstance(lang, bytes):
            # espeak reports b'\x05en-gb': a priority byte followed by the tag
            lang = lang.decode("utf-8", errors="ignore")
        lang = "".join(ch for ch in str(lang) if ch.isprintable()).strip()
        if lang:
            tags.append(lang.lower().replace("_", "-"))
    return tags


def _voice_id_tokens(voice) -> List[str]:
    """Words of the last path segment of a voice id, e.g. TTS_SV-SE_Alva -> tts, sv, se, alva."""
    voice_id = str(getattr(voice, "id", "") or "")
    name = voice_id.replace("\\", "/").rsplit("/", 1)[-1]
    return [t for t in re.split(r"[-_. ]+", name.lower()) if t]


@dataclass
class _Utterance:
    text: str
    speech: ResolvedSpeech
    on_done: Callable[[], None]
    on_stopped: Callable[[], None]
    on_error: Callable[[Exception], None]
    loop: Optional[asyncio.AbstractEventLoop]
    stopped: bool = False


class Pyttsx3Backend:
    """
    pyttsx3 renderer running on a single worker thread.

    `speak` queues the utterance and returns immediately. The worker runs
    `runAndWait()` and reports the outcome through exactly one callback,
    posted back to the caller's event loop when `speak` was called from one,
    otherwise invoked on the worker thread. A missing voice for the requested
    language is reported as an error so the dispatcher can fall back.
    """

    def __init__(self, engine=None, base_wpm: Optional[int] = None, volume: Optional[float] = None):
        self._engine = engine
        self.base_wpm = base_wpm or settings.TTS_BASE_WPM
        self.volume = settings.TTS_VOLUME if volume is None else volume

        self._jobs: "queue.Queue[Optional[_Utterance]]" = queue.Queue()
        self._lock = threading.Lock()
        self._pending: List[_Utterance] = []
        self._current: Optional[_Utterance] = None
        self._worker: Optional[threading.Thread] = None

    @property
    def engine(self):
        if self._engine is None:
            self._engine = pyttsx3.init()
        return self._engine

    def select_voice(self, language: str) -> str:
        prefix = language.lower().replace("_", "-")
        primary = prefix.split("-", 1)[0]
        for voice in self.engine.getProperty("voices"):
            for tag in _voice_languages(voice):
                if tag == prefix or tag.startswith(prefix + "-"):
                    return voice.id
            if primary in _voice_id_tokens(voice):
                return voice.id
        raise LookupError(f"No installed voice for language '{language}'")

    def speak(
        self,
        text: str,
        speech: ResolvedSpeech,
        on_done: Callable[[], None],
        on_stopped: Callable[[], None],
        on_error: Callable[[Exception], None],
    ) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        job = _Utterance(text, speech, on_done, on_stopped, on_error, loop)
        with self._lock:
            self._pending.append(job)
            if self._worker is None or not self._worker.is_alive():
                self._worker = threading.Thread(target=self._run, name="tts_thread", daemon=True)
                self._worker.start()
        self._jobs.put(job)

    def stop_all(self) -> None:
        """Halt the utterance in progress and cancel any not yet started."""
        with self._lock:
            for job in self._pending:
                job.stopped = True
            current = self._current
            if current is not None:
                current.stopped = True
        if current is not None:
            self.engine.stop()

    def close(self, timeout: float = 2.0) -> None:
        """Stop speaking and shut the worker thread down."""
        self.stop_all()
        worker = self._worker
        if worker is not None and worker.is_alive():
            self._jobs.put(None)
            worker.join(timeout)
        self._worker = None

    # --- Worker thread ---

    def _run(self) -> None:
        while True:
            job = self._jobs.get()
            try:
                if job is None:
                    break
                self._render(job)
            finally:
                self._jobs.task_done()
        logger.debug("TTS worker exiting")

    def _render(self, job: _Utterance) -> None:
        with self._lock:
            self._pending.remove(job)
            cancelled = job.stopped
            if not cancelled:
                self._current = job
        if cancelled:
            self._deliver(job, job.on_stopped)
            return

        error: Optional[Exception] = None
        try:
            engine = self.engine
            engine.setProperty("voice", self.select_voice(job.speech.language))
            engine.setProperty("rate", round(self.base_wpm * job.speech.rate))
            engine.setProperty("volume", self.volume)
            # pyttsx3 has no portable pitch property
            if job.speech.pitch != 1.0:
                logger.debug(f"Ignoring pitch {job.speech.pitch}; not supported by pyttsx3")
            engine.say(job.text)
            engine.runAndWait()
        except Exception as e:
            logger.error(f"pyttsx3 failed to speak in '{job.speech.language}': {e}")
            error = e
        finally:
            with self._lock:
                self._current = None

        if error is not None:
            self._deliver(job, job.on_error, error)
        elif job.stopped:
            self._deliver(job, job.on_stopped)
        else:
            self._deliver(job, job.on_done)

    def _deliver(self, job: _Utterance, callback: Callable[..., None], *args: Any) -> None:
        if job.loop is not None and not job.loop.is_closed():
            job.loop.call_soon_threadsafe(callback, *args)
        else:
            callback(*args)
