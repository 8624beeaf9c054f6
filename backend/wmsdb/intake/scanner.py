"""
Scanner adapter.

Wraps whatever decoder the caller injects (a camera library, a USB wedge
reader, a test fake) behind one contract: `read()` returns the next
decoded barcode string. Frames the decoder cannot read raise `DecodeMiss`
and are skipped; a camera that cannot be opened or dies mid-stream raises
`CameraUnavailable`, after which the caller falls back to `manual_entry`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterable, Callable, Optional

logger = logging.getLogger(__name__)


class DecodeMiss(Exception):
    """No barcode in this frame. Never fatal."""


class CameraUnavailable(Exception):
    """The camera could not be opened or stopped delivering frames."""


Decoder = Callable[[Any], str]


def manual_entry(text: Optional[str]) -> str:
    code = (text or "").strip()
    if not code:
        raise ValueError("Enter a barcode")
    return code


class ScannerAdapter:
    def __init__(
        self,
        decoder: Decoder,
        frames: Optional[AsyncIterable[Any]] = None,
    ):
        self._decoder = decoder
        self._frames = frames
        self.misses = 0

    @property
    def has_camera(self) -> bool:
        return self._frames is not None

    async def read(self) -> str:
        """Return the first barcode decoded from the frame stream."""
        if self._frames is None:
            raise CameraUnavailable("No camera configured")
        try:
            async for frame in self._frames:
                try:
                    text = self._decoder(frame)
                except DecodeMiss:
                    self.misses += 1
                    continue
                code = (text or "").strip()
                if code:
                    logger.debug("Decoded barcode %s after %d misses", code, self.misses)
                    self.misses = 0
                    return code
        except OSError as exc:
            raise CameraUnavailable(str(exc)) from exc
        raise CameraUnavailable("Camera stream ended")


async def scan_into(flow, scanner: ScannerAdapter) -> "asyncio.Task":
    """Start scanning, hand the next decoded code to `flow`, return its lookup task."""
    flow.start_scanning()
    code = await scanner.read()
    return flow.handle_barcode_scanned(code)
