"""
Tests for the debounced voicing preview.

The preview is driven with asyncio.run and injected lookups so each test
controls exactly when a lookup starts and finishes.

Run with: pytest tests/test_preview.py -v
"""

import asyncio

import pytest

from fretlab.app.preview import PreviewState, VoicingPreview
from fretlab.config import get_config
from fretlab.data.schema import ChordVoicing
from fretlab.library.voicings import get_voicings

VOICING_A = ChordVoicing(frets=["x", 0, 2, 2, 2, 0], label="A")
VOICING_B = ChordVoicing(frets=["x", 2, 4, 4, 4, 2], label="B")


async def wait_until(predicate, attempts=500):
    """Yield to the loop until predicate() holds."""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


class GatedLookup:
    """Async lookup whose calls block until the test opens their gate."""

    def __init__(self, results):
        self.results = results
        self.started = {symbol: asyncio.Event() for symbol in results}
        self.gates = {symbol: asyncio.Event() for symbol in results}
        self.calls = []

    async def __call__(self, symbol):
        self.calls.append(symbol)
        self.started[symbol].set()
        await self.gates[symbol].wait()
        result = self.results[symbol]
        if isinstance(result, Exception):
            raise result
        return result


def make_gated_lookup(results):
    lookup = GatedLookup(results)

    async def call(symbol):
        return await lookup(symbol)

    return lookup, call


class TestBasicRequests:

    def test_sync_lookup_runs_off_the_loop(self):
        calls = []

        def lookup(symbol):
            calls.append(symbol)
            return [VOICING_A]

        async def scenario():
            preview = VoicingPreview(lookup=lookup, debounce_seconds=0)
            seq = preview.request("A")
            assert preview.state.is_loading
            await preview.wait_idle()
            return seq, preview.state

        seq, state = asyncio.run(scenario())
        assert calls == ["A"]
        assert state.voicings == [VOICING_A]
        assert state.symbol == "A"
        assert state.sequence == seq
        assert not state.is_loading
        assert state.error is None

    def test_default_lookup_uses_voicing_library(self):
        async def scenario():
            async with VoicingPreview(debounce_seconds=0) as preview:
                preview.request("C♯m7")
                await preview.wait_idle()
                return preview.state

        state = asyncio.run(scenario())
        assert state.symbol == "C#min7"
        assert state.voicings == get_voicings("C#m7")

    def test_sequence_numbers_increase(self):
        async def scenario():
            preview = VoicingPreview(lookup=lambda s: [], debounce_seconds=0)
            seqs = [preview.request(s) for s in ["C", "D", "E"]]
            await preview.wait_idle()
            return seqs, preview.latest_sequence

        seqs, latest = asyncio.run(scenario())
        assert seqs == [1, 2, 3]
        assert latest == 3

    def test_empty_symbol_clears_state(self):
        async def scenario():
            preview = VoicingPreview(lookup=lambda s: [VOICING_A], debounce_seconds=0)
            preview.request("A")
            await preview.wait_idle()
            seq = preview.request("   ")
            return seq, preview.state

        seq, state = asyncio.run(scenario())
        assert state == PreviewState(sequence=seq)

    def test_debounce_defaults_to_config(self):
        assert VoicingPreview().debounce_seconds == get_config().debounce_seconds
        assert VoicingPreview(debounce_seconds=-1).debounce_seconds == 0.0


class TestDebounce:

    def test_only_the_last_rapid_request_is_looked_up(self):
        calls = []

        async def lookup(symbol):
            calls.append(symbol)
            return [VOICING_A]

        async def scenario():
            preview = VoicingPreview(lookup=lookup, debounce_seconds=0.05)
            for symbol in ["C", "Cm", "Cm7"]:
                preview.request(symbol)
            await preview.wait_idle()
            return preview.state

        state = asyncio.run(scenario())
        assert calls == ["Cm7"]
        assert state.symbol == "Cmin7"


class TestLastIssuedWins:

    def test_slow_older_result_never_overwrites_newer(self):
        async def scenario():
            lookup, call = make_gated_lookup({"A": [VOICING_A], "B": [VOICING_B]})
            seen = []
            preview = VoicingPreview(lookup=call, debounce_seconds=0, on_update=seen.append)

            preview.request("A")
            await lookup.started["A"].wait()
            seq_b = preview.request("B")
            await lookup.started["B"].wait()

            # B resolves first, then the slower A
            lookup.gates["B"].set()
            await wait_until(lambda: preview.state.sequence == seq_b and not preview.state.is_loading)
            lookup.gates["A"].set()
            await preview.wait_idle()
            return preview.state, seen, lookup.calls

        state, seen, calls = asyncio.run(scenario())
        assert calls == ["A", "B"]
        assert state.symbol == "B"
        assert state.voicings == [VOICING_B]
        assert all(s.voicings != [VOICING_A] for s in seen)

    def test_older_result_arriving_first_is_dropped_too(self):
        async def scenario():
            lookup, call = make_gated_lookup({"A": [VOICING_A], "B": [VOICING_B]})
            preview = VoicingPreview(lookup=call, debounce_seconds=0)

            preview.request("A")
            await lookup.started["A"].wait()
            preview.request("B")
            await lookup.started["B"].wait()

            lookup.gates["A"].set()
            await asyncio.sleep(0.01)
            mid_state = preview.state
            lookup.gates["B"].set()
            await preview.wait_idle()
            return mid_state, preview.state

        mid_state, final_state = asyncio.run(scenario())
        assert mid_state.is_loading
        assert mid_state.voicings == []
        assert final_state.voicings == [VOICING_B]

    def test_stale_error_is_ignored(self):
        async def scenario():
            lookup, call = make_gated_lookup({"A": RuntimeError("boom"), "B": [VOICING_B]})
            preview = VoicingPreview(lookup=call, debounce_seconds=0)

            preview.request("A")
            await lookup.started["A"].wait()
            preview.request("B")
            await lookup.started["B"].wait()
            lookup.gates["B"].set()
            lookup.gates["A"].set()
            await preview.wait_idle()
            return preview.state

        state = asyncio.run(scenario())
        assert state.error is None
        assert state.voicings == [VOICING_B]


class TestErrors:

    def test_lookup_error_is_captured(self):
        def lookup(symbol):
            raise ValueError("lookup failed")

        async def scenario():
            preview = VoicingPreview(lookup=lookup, debounce_seconds=0)
            preview.request("Am")
            await preview.wait_idle()
            return preview.state

        state = asyncio.run(scenario())
        assert state.error == "lookup failed"
        assert state.voicings == []
        assert not state.is_loading


class TestClose:

    def test_no_updates_after_close(self):
        async def scenario():
            lookup, call = make_gated_lookup({"A": [VOICING_A]})
            seen = []
            preview = VoicingPreview(lookup=call, debounce_seconds=0, on_update=seen.append)

            preview.request("A")
            await lookup.started["A"].wait()
            updates_before_close = len(seen)
            preview.close()
            lookup.gates["A"].set()
            await preview.wait_idle()
            return preview, seen, updates_before_close

        preview, seen, updates_before_close = asyncio.run(scenario())
        assert preview.closed
        assert len(seen) == updates_before_close
        assert preview.state.voicings == []

    def test_pending_debounce_is_cancelled_on_close(self):
        calls = []

        async def scenario():
            preview = VoicingPreview(lookup=lambda s: calls.append(s) or [], debounce_seconds=0.05)
            preview.request("C")
            await preview.aclose()
            return preview

        preview = asyncio.run(scenario())
        assert calls == []
        assert preview.closed

    def test_request_after_close_raises(self):
        async def scenario():
            preview = VoicingPreview(lookup=lambda s: [], debounce_seconds=0)
            async with preview:
                pass
            with pytest.raises(RuntimeError):
                preview.request("C")

        asyncio.run(scenario())


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
