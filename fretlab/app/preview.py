"""
Chord Voicing Preview - Debounced Async Lookups for UI Code

UI code calls `request()` on every keystroke. The preview waits until
input has been quiet for the debounce window, runs the (synchronous)
voicing lookup off the event loop, and applies the result only if no
newer request has been issued in the meantime.

Rules:
    - Every request gets a sequence number; the newest one issued wins,
      even if an older lookup finishes later
    - A newer request resets the debounce timer; lookups already running
      are never aborted, their results are dropped
    - After close() nothing is applied and no callback fires

Example:
    async def main():
        async with VoicingPreview(on_update=render) as preview:
            preview.request("Am")
            preview.request("Am7")   # supersedes "Am"
            await preview.wait_idle()
            print(preview.state.voicings)
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass, field, replace
from typing import Awaitable, Callable, Dict, List, Optional, Set, Union

from fretlab.config import get_config
from fretlab.data.schema import ChordVoicing
from fretlab.errors import InvalidChordSymbolError
from fretlab.library.voicings import get_voicings
from fretlab.theory.symbols import format_chord_canonical_name

logger = logging.getLogger(__name__)

Lookup = Callable[[str], Union[List[ChordVoicing], Awaitable[List[ChordVoicing]]]]


@dataclass(frozen=True)
class PreviewState:
    """
    Snapshot of what the UI should show.

    Attributes:
        symbol: Chord symbol the voicings belong to
        voicings: Voicings of the most recently applied request
        is_loading: True while the newest request has not been applied
        error: Lookup error message of the newest request, if it failed
        sequence: Sequence number of the request that produced this state
    """
    symbol: Optional[str] = None
    voicings: List[ChordVoicing] = field(default_factory=list)
    is_loading: bool = False
    error: Optional[str] = None
    sequence: int = 0


class VoicingPreview:
    """Last-issued-wins, debounced wrapper around a voicing lookup."""

    def __init__(self, lookup: Optional[Lookup] = None,
                 debounce_seconds: Optional[float] = None,
                 on_update: Optional[Callable[[PreviewState], None]] = None):
        self._lookup = lookup or get_voicings
        if debounce_seconds is None:
            debounce_seconds = get_config().debounce_seconds
        self.debounce_seconds = max(0.0, debounce_seconds)
        self._on_update = on_update
        self._issued = 0
        self._latest = 0
        self._tasks: Set[asyncio.Task] = set()
        self._debouncing: Dict[int, asyncio.Task] = {}
        self._closed = False
        self.state = PreviewState()

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def latest_sequence(self) -> int:
        return self._latest

    def request(self, chord_symbol: str) -> int:
        """
        Ask for a preview of `chord_symbol`. Must be called from a running loop.

        Returns:
            The sequence number issued for this request
        """
        if self._closed:
            raise RuntimeError("VoicingPreview is closed")

        self._issued += 1
        seq = self._issued
        self._latest = seq
        self._cancel_debounce()

        if not chord_symbol or not chord_symbol.strip():
            self._set_state(PreviewState(sequence=seq))
            return seq

        self._set_state(replace(self.state, is_loading=True, error=None))
        task = asyncio.get_running_loop().create_task(self._run(seq, chord_symbol))
        self._tasks.add(task)
        self._debouncing[seq] = task
        task.add_done_callback(self._tasks.discard)
        return seq

    async def wait_idle(self) -> None:
        """Wait until every scheduled lookup has finished or been dropped."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        """Stop applying results; pending debounce timers are cancelled."""
        self._closed = True
        for task in list(self._tasks):
            task.cancel()

    async def aclose(self) -> None:
        self.close()
        await self.wait_idle()

    async def __aenter__(self) -> "VoicingPreview":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _cancel_debounce(self) -> None:
        """Reset the timer: requests still waiting out the window are dropped."""
        for seq, task in list(self._debouncing.items()):
            logger.debug("Preview #%d superseded during debounce", seq)
            task.cancel()
        self._debouncing.clear()

    def _is_current(self, seq: int) -> bool:
        return not self._closed and seq == self._latest

    async def _call_lookup(self, chord_symbol: str) -> List[ChordVoicing]:
        if inspect.iscoroutinefunction(self._lookup):
            return list(await self._lookup(chord_symbol))
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, self._lookup, chord_symbol)
        if inspect.isawaitable(result):
            result = await result
        return list(result)

    async def _run(self, seq: int, chord_symbol: str) -> None:
        if self.debounce_seconds:
            await asyncio.sleep(self.debounce_seconds)
        self._debouncing.pop(seq, None)
        if not self._is_current(seq):
            logger.debug("Preview #%d superseded before lookup", seq)
            return

        try:
            voicings = await self._call_lookup(chord_symbol)
        except Exception as e:
            if self._is_current(seq):
                logger.warning("Preview lookup for %r failed: %s", chord_symbol, e)
                self._set_state(PreviewState(symbol=chord_symbol, error=str(e), sequence=seq))
            return

        if not self._is_current(seq):
            logger.debug("Discarding stale preview #%d (%s)", seq, chord_symbol)
            return
        self._set_state(PreviewState(symbol=_display_symbol(chord_symbol),
                                     voicings=voicings, sequence=seq))

    def _set_state(self, state: PreviewState) -> None:
        if self._closed:
            return
        self.state = state
        if self._on_update is not None:
            self._on_update(state)


def _display_symbol(chord_symbol: str) -> str:
    try:
        return format_chord_canonical_name(chord_symbol)
    except InvalidChordSymbolError:
        return chord_symbol.strip()
