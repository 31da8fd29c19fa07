# travelguide/services/narration_service.py
# Single-flight narration queue with a one-shot fallback-language retry.

import logging
from collections import deque
from enum import Enum
from typing import Callable, Deque, Optional, Protocol, Tuple

from travelguide.core.config import settings
from travelguide.models.dto import NarrationOptions, NarrationRequest, ResolvedSpeech

logger = logging.getLogger(__name__)

# --- Contracts ---

class DispatcherState(str, Enum):
    IDLE = "IDLE"
    SPEAKING = "SPEAKING"
    SPEAKING_FALLBACK = "SPEAKING_FALLBACK"

class NarrationBackend(Protocol):
    """Anything that can render one utterance and report how it ended.

    Exactly one of the three callbacks is expected per `speak` call. They may
    fire synchronously inside `speak` or later from the host's event loop.
    """
    def speak(
        self,
        text: str,
        speech: ResolvedSpeech,
        on_done: Callable[[], None],
        on_stopped: Callable[[], None],
        on_error: Callable[[Exception], None],
    ) -> None: ...

    def stop_all(self) -> None: ...


# --- Dispatcher ---

class NarrationDispatcher:
    """
    Serializes narration requests onto a backend, one at a time, FIFO.

    A request that fails in the primary language is re-issued once in the
    fallback language before the queue moves on. A second failure drops the
    request. Callbacks from an attempt that is no longer current are ignored.
    """

    def __init__(
        self,
        backend: NarrationBackend,
        primary_language: Optional[str] = None,
        fallback_language: Optional[str] = None,
        default_pitch: Optional[float] = None,
        default_rate: Optional[float] = None,
    ):
        self._backend = backend
        self.primary_language = primary_language or settings.PRIMARY_LANGUAGE
        self.fallback_language = fallback_language or settings.FALLBACK_LANGUAGE
        self.default_pitch = settings.DEFAULT_PITCH if default_pitch is None else default_pitch
        self.default_rate = settings.DEFAULT_RATE if default_rate is None else default_rate

        self._queue: Deque[NarrationRequest] = deque()
        self._state = DispatcherState.IDLE
        self._current: Optional[NarrationRequest] = None
        self._current_speech: Optional[ResolvedSpeech] = None
        self._attempt = 0

    @property
    def state(self) -> DispatcherState:
        return self._state

    @property
    def current(self) -> Optional[NarrationRequest]:
        return self._current

    @property
    def queue_length(self) -> int:
        return len(self._queue)

    def pending(self) -> Tuple[NarrationRequest, ...]:
        return tuple(self._queue)

    def is_currently_speaking(self) -> bool:
        return self._state in (DispatcherState.SPEAKING, DispatcherState.SPEAKING_FALLBACK)

    def speak(self, text: str, options: Optional[NarrationOptions] = None) -> NarrationRequest:
        """Start narrating now if idle, otherwise queue behind the current request.

        Returns as soon as the request is accepted; it does not wait for audio.
        """
        request = NarrationRequest(text=text, options=options or NarrationOptions())
        if self.is_currently_speaking():
            self._queue.append(request)
            logger.debug(f"Narration queued ({len(self._queue)} pending)")
            return request

        self._start(request)
        return request

    def stop(self) -> None:
        """Drop everything queued, go idle and halt the backend. Safe to call repeatedly."""
        # invalidate callbacks from the utterance being halted
        self._attempt += 1
        self._queue.clear()
        self._state = DispatcherState.IDLE
        self._current = None
        self._current_speech = None
        self._backend.stop_all()

    # --- Transitions ---

    def _resolve(self, request: NarrationRequest, language: Optional[str] = None) -> ResolvedSpeech:
        options = request.options
        return ResolvedSpeech(
            language=language or options.language or self.primary_language,
            pitch=self.default_pitch if options.pitch is None else options.pitch,
            rate=self.default_rate if options.rate is None else options.rate,
        )

    def _start(self, request: NarrationRequest) -> None:
        self._current = request
        self._state = DispatcherState.SPEAKING
        self._issue(request, self._resolve(request))

    def _issue(self, request: NarrationRequest, speech: ResolvedSpeech) -> None:
        self._attempt += 1
        attempt = self._attempt
        self._current_speech = speech
        try:
            self._backend.speak(
                request.text,
                speech,
                on_done=lambda: self._on_done(attempt),
                on_stopped=lambda: self._on_stopped(attempt),
                on_error=lambda error: self._on_error(attempt, error),
            )
        except Exception as e:
            # a backend that raises is treated like one that reported on_error
            self._on_error(attempt, e)

    def _advance(self) -> None:
        self._current = None
        self._current_speech = None
        if self._queue:
            self._start(self._queue.popleft())
        else:
            self._state = DispatcherState.IDLE

    def _is_stale(self, attempt: int, signal: str) -> bool:
        if attempt != self._attempt:
            logger.debug(f"Ignoring {signal} from superseded narration attempt {attempt}")
            return True
        return False

    def _on_done(self, attempt: int) -> None:
        if self._is_stale(attempt, "done"):
            return
        self._advance()

    def _on_stopped(self, attempt: int) -> None:
        if self._is_stale(attempt, "stopped"):
            return
        # the queue is left as is; only stop() clears it
        self._state = DispatcherState.IDLE
        self._current = None
        self._current_speech = None

    def _on_error(self, attempt: int, error: Exception) -> None:
        if self._is_stale(attempt, "error"):
            return

        request = self._current
        speech = self._current_speech
        can_fall_back = (
            self._state == DispatcherState.SPEAKING
            and speech is not None
            and speech.language == self.primary_language
            and self.fallback_language != self.primary_language
        )
        if request is not None and can_fall_back:
            logger.warning(
                f"Narration failed in '{self.primary_language}', falling back to '{self.fallback_language}': {error}"
            )
            self._state = DispatcherState.SPEAKING_FALLBACK
            self._issue(request, self._resolve(request, language=self.fallback_language))
            return

        language = speech.language if speech else "?"
        logger.error(f"Narration failed in '{language}', dropping request: {error}")
        self._advance()
