"""Speech collaborators that voice the pipeline's utterances."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass

from grocersee.common.logging import get_logger


@dataclass
class SpokenUtterance:
    """An utterance handed to the speech backend."""

    text: str
    locale: str
    timestamp: float


class SpeechBackend:
    """Abstract speech backend."""

    async def setup(self) -> None:
        """Setup speech backend."""
        pass

    async def teardown(self) -> None:
        """Teardown speech backend."""
        pass

    async def speak(self, utterance: str, locale: str) -> None:
        """Speak one complete utterance."""
        raise NotImplementedError

    def get_status(self) -> dict:
        """Get backend status."""
        raise NotImplementedError


class MockSpeechBackend(SpeechBackend):
    """Mock speech backend that logs and records what it would say."""

    def __init__(self, latency_s: float = 0.0) -> None:
        self.latency_s = latency_s
        self.spoken: list[SpokenUtterance] = []
        self.logger = get_logger("mock_speech")

    async def speak(self, utterance: str, locale: str) -> None:
        if not utterance:
            raise ValueError("Refusing to speak an empty utterance")

        if self.latency_s:
            await asyncio.sleep(self.latency_s)  # Simulate playback time

        self.spoken.append(SpokenUtterance(text=utterance, locale=locale, timestamp=time.time()))
        self.logger.info("utterance_spoken", text=utterance, locale=locale)

    @property
    def last(self) -> str | None:
        return self.spoken[-1].text if self.spoken else None

    def get_status(self) -> dict:
        return {
            "available": True,
            "backend": "mock",
            "utterances": len(self.spoken),
        }
