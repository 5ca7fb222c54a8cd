"""
Tests for access_engine/tts.py

Synthesis and playback are replaced by recorders, so the queueing and
cancellation logic runs without piper or an audio device.
"""

import queue
import sys
import threading
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from access_engine import tts


class FakeChannel:
    """Stands in for a pygame mixer channel."""

    def __init__(self):
        self.stopped = False

    def stop(self):
        self.stopped = True


@pytest.fixture
def device(monkeypatch):
    """tts module with a fresh queue and no worker thread."""
    monkeypatch.setattr(tts, "_pending", queue.Queue())
    monkeypatch.setattr(tts, "_current_channel", None)
    monkeypatch.setattr(tts, "_speech_id", 0)
    monkeypatch.setattr(tts, "_ensure_worker", lambda: None)
    return tts


def pending(device):
    return [text for text, _ in device._pending.queue]


class TestSay:
    """Accepting text for speech."""

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_blank_text_rejected(self, device, text):
        """Blank text is not spoken."""
        assert device.say(text) is False
        assert pending(device) == []

    def test_queued_speech_keeps_order(self, device):
        """Queued speech waits in the order it was given."""
        assert device.say("Build menu", interrupt=False) is True
        assert device.say("Ladder", interrupt=False) is True
        assert pending(device) == ["Build menu", "Ladder"]

    def test_queued_speech_does_not_cancel(self, device):
        """Queueing leaves the speech id alone."""
        device.say("Build menu", interrupt=False)
        device.say("Ladder", interrupt=False)
        assert device._speech_id == 0

    def test_interrupt_drops_pending(self, device):
        """An interrupt clears the queue and bumps the speech id."""
        device.say("Build menu", interrupt=False)
        device.say("Ladder", interrupt=False)

        device.say("Tile", interrupt=True)
        assert pending(device) == ["Tile"]
        assert device._speech_id == 1
        assert device._pending.queue[0][1] == 1

    def test_interrupt_stops_playing_channel(self, device):
        """An interrupt stops whatever is playing."""
        channel = FakeChannel()
        device._current_channel = channel

        device.say("Tile", interrupt=True)
        assert channel.stopped
        assert device._current_channel is None


class TestStop:
    """Cancelling speech."""

    def test_stop_clears_everything(self, device):
        """stop() empties the queue and stops the channel."""
        channel = FakeChannel()
        device._current_channel = channel
        device.say("Ladder", interrupt=False)

        device.stop()
        assert pending(device) == []
        assert channel.stopped
        assert device._speech_id == 1

    def test_stale_request_not_spoken(self, device):
        """Speech queued before a stop is skipped by the worker."""
        device.say("Ladder", interrupt=False)
        text, speech_id = device._pending.get_nowait()
        device.stop()
        assert device._speak_sync(text, speech_id) is False


class TestWorker:
    """The worker thread drains the queue in order."""

    def test_worker_speaks_in_fifo_order(self, monkeypatch):
        """Queued speech reaches the device first in, first out."""
        monkeypatch.setattr(tts, "_pending", queue.Queue())
        monkeypatch.setattr(tts, "_worker", None)
        monkeypatch.setattr(tts, "_speech_id", 0)

        spoken = []
        done = threading.Event()

        def record(text, speech_id):
            spoken.append(text)
            if len(spoken) == 3:
                done.set()
            return True

        monkeypatch.setattr(tts, "_speak_sync", record)

        for text in ("Build menu", "Ladder", "Tile"):
            tts.say(text, interrupt=False)

        assert done.wait(timeout=5)
        assert spoken == ["Build menu", "Ladder", "Tile"]
