# audio/synth.py
import logging
import math
import struct
from typing import Dict, Optional
import pygame
from config import AudioConfig

log = logging.getLogger(__name__)

MIDI_BY_LETTER = {
    "C": 60,
    "D": 62,
    "E": 64,
    "F": 65,
    "G": 67,
    "A": 69,
    "B": 71,
}

def midi_to_freq(midi: int) -> float:
    return 440.0 * 2.0 ** ((midi - 69) / 12.0)

def tone_envelope(t_ms: float, cfg: Optional[AudioConfig] = None) -> float:
    """Percussive gain curve: linear attack, exponential decay, hard stop."""
    cfg = cfg or AudioConfig()
    if t_ms < 0 or t_ms >= cfg.stop_ms:
        return 0.0
    if t_ms < cfg.attack_ms:
        return cfg.peak * (t_ms / cfg.attack_ms)
    if t_ms < cfg.decay_ms:
        frac = (t_ms - cfg.attack_ms) / (cfg.decay_ms - cfg.attack_ms)
        return cfg.peak * (cfg.floor / cfg.peak) ** frac
    return cfg.floor

def render_tone(freq: float, cfg: Optional[AudioConfig] = None,
                sample_rate: Optional[int] = None, channels: int = 1) -> bytes:
    """Signed 16-bit little-endian PCM, interleaved for `channels`."""
    cfg = cfg or AudioConfig()
    sr = int(sample_rate or cfg.sample_rate)
    n = int(sr * cfg.stop_ms / 1000.0)
    samples = []
    for i in range(n):
        t = i / sr
        v = int(32767 * tone_envelope(t * 1000.0, cfg) * math.sin(2.0 * math.pi * freq * t))
        samples.extend([v] * channels)
    return struct.pack(f"<{len(samples)}h", *samples)

class ToneSynth:
    """
    答題音效：
    - 第一次 play() 才初始化 pygame.mixer（之後重複使用）
    - 每個音名的 Sound 只產生一次
    - 沒有音訊裝置時 play() 直接略過，不丟例外
    """
    def __init__(self, cfg: Optional[AudioConfig] = None):
        self.cfg = cfg or AudioConfig()
        self._ready = False
        self._unavailable = not self.cfg.enabled
        self._owns_mixer = False
        self._suspended = False
        self._format = (self.cfg.sample_rate, -16, 1)
        self._sounds: Dict[str, pygame.mixer.Sound] = {}

    @property
    def available(self) -> bool:
        return self._ready and not self._unavailable

    def _acquire(self) -> bool:
        if self._unavailable:
            return False
        if self._ready:
            return True
        try:
            if pygame.mixer.get_init() is None:
                pygame.mixer.init(frequency=self.cfg.sample_rate, size=-16, channels=1)
                self._owns_mixer = True
            fmt = pygame.mixer.get_init()
            if fmt is None or fmt[1] != -16:
                raise pygame.error(f"unsupported mixer format: {fmt}")
            self._format = fmt
            self._ready = True
            log.info("[Synth] mixer ready %s", fmt)
        except Exception as e:
            self._unavailable = True
            log.warning("[Synth] audio unavailable, tones disabled: %s", e)
        return self._ready

    def _sound_for(self, letter: str) -> pygame.mixer.Sound:
        snd = self._sounds.get(letter)
        if snd is None:
            freq, _, channels = self._format
            pcm = render_tone(midi_to_freq(MIDI_BY_LETTER[letter]), self.cfg,
                              sample_rate=freq, channels=channels)
            snd = pygame.mixer.Sound(buffer=pcm)
            self._sounds[letter] = snd
        return snd

    def play(self, letter: str):
        if letter not in MIDI_BY_LETTER:
            raise ValueError(f"Not a natural note letter: {letter!r}")
        if not self._acquire():
            return
        try:
            if self._suspended:
                pygame.mixer.unpause()
                self._suspended = False
            self._sound_for(letter).play()
        except Exception as e:
            log.debug("[Synth] play %s failed: %s", letter, e)

    def suspend(self):
        if not self._ready or self._suspended:
            return
        try:
            pygame.mixer.pause()
            self._suspended = True
        except Exception:
            pass

    def close(self):
        self._sounds.clear()
        if self._owns_mixer:
            try:
                pygame.mixer.quit()
            except Exception:
                pass
        self._owns_mixer = False
        self._ready = False
        self._suspended = False
