"""Spoken message generation."""

from __future__ import annotations

from typing import Sequence

from grocersee.config import MessageConfig
from grocersee.errors import UnreachableVariantError
from grocersee.models import CategorySummary, FrameResult, NoDetection, SingleFocus


class MessageGenerator:
    """Render a frame result as one sentence in the configured locale."""

    def __init__(self, templates: MessageConfig | None = None) -> None:
        self.templates = templates or MessageConfig()

    @property
    def locale(self) -> str:
        return self.templates.locale

    def generate(self, result: FrameResult, labels: Sequence[str] = ()) -> str:
        """Build the utterance for a frame.

        Args:
            result: Output of the focus analyzer.
            labels: Every label detected in the frame. A single-focus frame
                containing a priority item anywhere gets that item's phrase.

        Raises:
            UnreachableVariantError: For anything that is not a frame result.
        """
        t = self.templates

        if isinstance(result, NoDetection):
            return t.no_detection

        if isinstance(result, SingleFocus):
            present = set(labels) | {result.item}
            for item, phrase in t.priority_phrases.items():
                if item in present:
                    return phrase
            return t.single_focus.format(item=result.item)

        if isinstance(result, CategorySummary):
            return t.category_summary.format(
                categories=t.category_separator.join(result.categories)
            )

        raise UnreachableVariantError(f"Unknown frame result: {result!r}")
