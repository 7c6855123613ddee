# ========================= config.py =========================
from dataclasses import dataclass, field
from typing import Optional, Tuple

@dataclass
class RenderConfig:
    window_w: int = 960
    window_h: int = 520
    fps: int = 60
    staff_top: int = 96          # 譜表繪圖區在視窗中的 y 偏移
    staff_h: int = 260
    caption: str = "Instant Note Trainer"

@dataclass
class StaffConfig:
    treble_anchor_y: float = 74.0   # middle line B4
    bass_anchor_y: float = 184.0    # middle line D3
    line_spacing: float = 12.0
    staff_x0: int = 140
    staff_x1: int = 840
    note_x: int = 430
    slot_offsets: Tuple[int, ...] = (0, 140, 260)

    @property
    def step_px(self) -> float:
        return self.line_spacing / 2

@dataclass
class AudioConfig:
    enabled: bool = True
    sample_rate: int = 44100
    peak: float = 0.35
    floor: float = 0.0001
    attack_ms: float = 5.0
    decay_ms: float = 200.0
    stop_ms: float = 250.0

@dataclass
class TimingConfig:
    advance_ms: int = 420       # correct → 佇列前進
    feedback_ms: int = 200      # wrong → feedback 回到 idle
    hint_ms: int = 500          # wrong → 提示消失

@dataclass
class SequencerConfig:
    max_attempts: int = 6
    step_min: int = -4
    step_max: int = 4
    seed: Optional[int] = None

@dataclass
class AppConfig:
    render: RenderConfig = field(default_factory=RenderConfig)
    staff: StaffConfig = field(default_factory=StaffConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)
    timing: TimingConfig = field(default_factory=TimingConfig)
    sequencer: SequencerConfig = field(default_factory=SequencerConfig)
    log_dir: Optional[str] = None   # None -> ./logs
