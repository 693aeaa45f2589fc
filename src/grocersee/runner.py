"""Frame runner: camera frames in, spoken sentences out.

At most one frame is in flight. A frame that arrives while the previous one
is still being processed waits in a single slot; a newer frame replaces it
instead of queueing behind it, so latency stays bounded when inference is
slow.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from typing import Iterable, Iterator

import numpy as np
from PIL import Image

from grocersee.common.logging import frame_context, get_logger
from grocersee.config import Config
from grocersee.errors import ConfigurationError
from grocersee.pipeline import DetectionPipeline, PipelineResult
from grocersee.speech import SpeechBackend
from grocersee.vision.inference import InferenceBackend
from grocersee.vision.preprocess import preprocess


@dataclass
class Frame:
    """Captured camera frame."""

    image: Image.Image | np.ndarray
    frame_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: float = field(default_factory=time.time)


@dataclass
class RunnerStats:
    """Counters for one runner."""

    submitted: int = 0
    processed: int = 0
    dropped: int = 0
    failed: int = 0
    last_utterance: str | None = None
    last_latency_ms: float = 0.0


def mock_frames(count: int, width: int = 640, height: int = 480) -> Iterator[Frame]:
    """Generate plain mock camera frames."""
    for i in range(count):
        shade = 40 + (i * 37) % 180
        yield Frame(image=Image.new("RGB", (width, height), color=(shade, 109, 137)))


class FrameRunner:
    """Drive the pipeline from a stream of camera frames."""

    def __init__(
        self,
        pipeline: DetectionPipeline,
        inference: InferenceBackend,
        speech: SpeechBackend,
        config: Config | None = None,
    ) -> None:
        self.pipeline = pipeline
        self.inference = inference
        self.speech = speech
        self.config = config or Config()
        self.stats = RunnerStats()
        self.logger = get_logger("grocersee.runner")

        self._pending: Frame | None = None
        self._frame_ready = asyncio.Event()
        self._idle = asyncio.Event()
        self._idle.set()
        self._task: asyncio.Task | None = None
        self._running = False
        self._error: ConfigurationError | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Set up the collaborators and start the worker."""
        if self._running:
            return

        await self.inference.setup()
        await self.speech.setup()

        self._running = True
        self._error = None
        self._task = asyncio.create_task(self._worker())
        self.logger.info("runner_started", locale=self.pipeline.locale)

    async def stop(self) -> None:
        """Stop the worker and tear down the collaborators."""
        if self._task is None:
            return

        self._running = False
        self._frame_ready.set()
        try:
            await self._task
        finally:
            self._task = None
            await self.speech.teardown()
            await self.inference.teardown()
        self.logger.info(
            "runner_stopped",
            processed=self.stats.processed,
            dropped=self.stats.dropped,
            failed=self.stats.failed,
        )

    async def __aenter__(self) -> FrameRunner:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    def submit(self, frame: Frame) -> None:
        """Offer a frame; replaces any frame still waiting to be processed."""
        self.stats.submitted += 1
        if self._pending is not None:
            self.stats.dropped += 1
            self.logger.debug("frame_dropped", frame_id=self._pending.frame_id)

        self._pending = frame
        self._idle.clear()
        self._frame_ready.set()

    async def drain(self) -> None:
        """Wait until no frame is pending or in flight.

        Raises:
            ConfigurationError: If the worker stopped on a configuration error.
        """
        if self._task is not None and self._running:
            await self._idle.wait()
        if self._error is not None:
            raise self._error

    async def run_frames(self, frames: Iterable[Frame], interval_s: float = 0.0) -> RunnerStats:
        """Submit frames at a fixed cadence, then wait for the last one."""
        for frame in frames:
            self.submit(frame)
            await asyncio.sleep(interval_s)
        await self.drain()
        return self.stats

    async def process_frame(self, frame: Frame) -> PipelineResult | None:
        """Run one frame through inference, the pipeline and speech.

        Inference failures are logged and counted; the frame is skipped.
        Other errors propagate. The worker counts them and moves on to the
        next frame, except for configuration errors, which stop it.
        """
        start = time.perf_counter()
        with frame_context(frame.frame_id):
            tensor = preprocess(frame.image, self.config.model.input_size)

            try:
                raw = await self.inference.infer(tensor)
            except Exception as e:
                self.stats.failed += 1
                self.logger.exception("inference_failed", error=str(e))
                return None

            result = self.pipeline.process_tensor(raw)
            await self.speech.speak(result.utterance, self.pipeline.locale)

            latency_ms = (time.perf_counter() - start) * 1000
            self.stats.processed += 1
            self.stats.last_utterance = result.utterance
            self.stats.last_latency_ms = latency_ms

            self.logger.info(
                "frame_processed",
                detections=len(result.detections),
                result=result.result.kind,
                latency_ms=round(latency_ms, 2),
            )
            return result

    async def _worker(self) -> None:
        while self._running:
            await self._frame_ready.wait()
            self._frame_ready.clear()

            frame, self._pending = self._pending, None
            if frame is None:
                continue

            try:
                await self.process_frame(frame)
            except ConfigurationError as e:
                self._error = e
                self._running = False
                self.logger.error("runner_configuration_error", error=str(e))
            except Exception as e:
                self.stats.failed += 1
                self.logger.exception("frame_failed", frame_id=frame.frame_id, error=str(e))
            finally:
                if self._pending is None or not self._running:
                    self._idle.set()
