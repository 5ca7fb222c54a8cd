"""
Speech device using Piper TTS

Piper is a fast, local, neural TTS system.
https://github.com/rhasspy/piper

Two entry points matter to the engine:
- say(text, interrupt=True): cancel current and pending speech, speak now
- say(text, interrupt=False): speak after everything already queued

Everything here fails soft: without piper or an audio device, say() logs
and returns False.
"""

import logging
import os
import queue
import tempfile
import threading
import wave
from pathlib import Path

# Suppress pygame welcome message
os.environ['PYGAME_HIDE_SUPPORT_PROMPT'] = '1'
import pygame.mixer

logger = logging.getLogger(__name__)

# Voice model configuration
VOICE_MODEL = os.environ.get("ACCESS_ENGINE_VOICE_MODEL", "en_US-libritts-high")
VOICE_SPEAKER = 166


def _get_voice_search_paths() -> list[Path]:
    """Get list of paths to search for voice model."""
    paths = [
        Path.home() / ".local" / "share" / "piper-voices",
        Path.home() / ".cache" / "piper",
        Path("/opt/piper"),
    ]
    # Also check the actual user home (in case HOME is overridden)
    try:
        import pwd
        real_home = Path(pwd.getpwuid(os.getuid()).pw_dir)
        paths.insert(0, real_home / ".local" / "share" / "piper-voices")
    except (ImportError, KeyError):
        pass
    return paths


# Piper voice instance (lazy loaded)
_piper_voice = None
_piper_available = None


def _get_piper_voice():
    """Get or create the Piper voice instance"""
    global _piper_voice, _piper_available

    if _piper_available is False:
        return None

    if _piper_voice is not None:
        return _piper_voice

    try:
        from piper import PiperVoice
    except ImportError:
        logger.info("piper-tts not installed, speech output disabled")
        _piper_available = False
        return None

    model_path = None
    for base_path in _get_voice_search_paths():
        candidate = base_path / f"{VOICE_MODEL}.onnx"
        if candidate.exists():
            model_path = candidate
            break

    if model_path is None:
        logger.info(f"Voice model {VOICE_MODEL} not found, speech output disabled")
        _piper_available = False
        return None

    try:
        _piper_voice = PiperVoice.load(str(model_path))
    except Exception as e:
        logger.warning(f"Failed to load voice model {model_path}: {e}")
        _piper_available = False
        return None

    _piper_available = True
    logger.info(f"Loaded voice model {model_path}")
    return _piper_voice


_mixer_initialized = False


def _ensure_mixer() -> bool:
    """Initialize the pygame mixer once."""
    global _mixer_initialized
    if _mixer_initialized:
        return True
    if pygame.mixer.get_init():
        _mixer_initialized = True
        return True
    # Larger buffer (1024) prevents clipping at the start of speech
    try:
        pygame.mixer.init(frequency=44100, size=-16, channels=2, buffer=1024)
        _mixer_initialized = True
        return True
    except pygame.error as e:
        logger.warning(f"Audio mixer unavailable: {e}")
        return False


_init_done = False


def init() -> None:
    """Pre-load the voice model and mixer in the background."""
    global _init_done
    if _init_done:
        return
    _init_done = True
    thread = threading.Thread(target=_init_sync, daemon=True)
    thread.start()


def _init_sync() -> None:
    _get_piper_voice()
    _ensure_mixer()


# =============================================================================
# Cancellation and queue
# =============================================================================

_current_channel = None
_speech_id = 0  # Incremented on every interrupt to cancel stale requests

_pending: "queue.Queue[tuple[str, int]]" = queue.Queue()
_worker = None
_worker_lock = threading.Lock()


def stop() -> None:
    """Stop current speech and drop everything queued."""
    global _current_channel, _speech_id
    _speech_id += 1
    while True:
        try:
            _pending.get_nowait()
        except queue.Empty:
            break
    ch = _current_channel
    if ch:
        try:
            ch.stop()
        except pygame.error as e:
            logger.debug(f"Channel stop failed: {e}")
    _current_channel = None


def _ensure_worker() -> None:
    global _worker
    with _worker_lock:
        if _worker is not None and _worker.is_alive():
            return
        _worker = threading.Thread(target=_worker_loop, daemon=True)
        _worker.start()


def _worker_loop() -> None:
    while True:
        text, speech_id = _pending.get()
        _speak_sync(text, speech_id)


def say(text: str, interrupt: bool = True) -> bool:
    """
    Speak `text` in the background.

    Args:
        text: Already-filtered text to speak
        interrupt: Cancel current and queued speech first

    Returns:
        True if the text was accepted for speaking
    """
    if not text or not text.strip():
        return False

    if interrupt:
        stop()
    _pending.put((text, _speech_id))
    _ensure_worker()
    return True


def _speak_sync(text: str, speech_id: int) -> bool:
    """Synchronous speech, called from the worker thread."""
    global _current_channel

    if speech_id != _speech_id:
        return False

    if not _ensure_mixer():
        return False

    voice = _get_piper_voice()
    if voice is None:
        logger.debug(f"Would speak: {text}")
        return False

    # Check again after potentially slow voice load
    if speech_id != _speech_id:
        return False

    wav_path = None
    try:
        with tempfile.NamedTemporaryFile(suffix='.wav', delete=False) as f:
            wav_path = f.name

        from piper.config import SynthesisConfig
        config = SynthesisConfig(speaker_id=VOICE_SPEAKER)

        # Pad with pauses to prevent clipping on short words
        audio_chunks = list(voice.synthesize(f"... {text} ...", config))
        if not audio_chunks:
            return False

        first_chunk = audio_chunks[0]
        with wave.open(wav_path, 'wb') as wav_file:
            wav_file.setnchannels(first_chunk.sample_channels)
            wav_file.setsampwidth(first_chunk.sample_width)
            wav_file.setframerate(first_chunk.sample_rate)
            for chunk in audio_chunks:
                wav_file.writeframes(chunk.audio_int16_bytes)

        if speech_id != _speech_id:
            return False

        sound = pygame.mixer.Sound(wav_path)
        channel = sound.play()
        _current_channel = channel

        # Block the worker until done so queued speech waits its turn
        if channel:
            while channel.get_busy():
                if speech_id != _speech_id:
                    channel.stop()
                    break
                pygame.time.wait(50)

        _current_channel = None
        return True

    except Exception as e:
        logger.warning(f"Speech synthesis failed: {e}")
        return False

    finally:
        if wav_path:
            Path(wav_path).unlink(missing_ok=True)


def is_available() -> bool:
    """Check if TTS is available"""
    return _get_piper_voice() is not None
