# notes/staff.py
import logging
from typing import Optional
from config import StaffConfig
from notes.model import LETTERS

STEP_MIN = -4
STEP_MAX = 4

# 中間線的音名：高音譜 B4、低音譜 D3
CLEF_ANCHOR = {
    "treble": "B",
    "bass": "D",
}

def _anchor_letter(clef: str) -> str:
    try:
        return CLEF_ANCHOR[clef]
    except KeyError:
        raise ValueError(f"Unknown clef: {clef!r}") from None

def letter_for_step(clef: str, step: int) -> str:
    """Letter name of the natural note `step` half-lines away from the middle line."""
    base = LETTERS.index(_anchor_letter(clef))
    return LETTERS[(base + int(step)) % len(LETTERS)]

def is_on_staff(step: int) -> bool:
    return STEP_MIN <= step <= STEP_MAX

class StaffMapper:
    """
    把 (clef, step) 轉成繪圖座標：
    - pixel_y(clef, step)：音符中心的 y
    - ledger_lines_for(clef, step)：加線的 y（由譜表往外排序）
    """
    def __init__(self, cfg: Optional[StaffConfig] = None):
        self.cfg = cfg or StaffConfig()

    def anchor_y(self, clef: str) -> float:
        _anchor_letter(clef)
        return self.cfg.treble_anchor_y if clef == "treble" else self.cfg.bass_anchor_y

    def pixel_y(self, clef: str, step: int) -> float:
        return self.anchor_y(clef) - step * self.cfg.step_px

    def line_ys(self, clef: str) -> list[float]:
        return [self.pixel_y(clef, s) for s in range(STEP_MAX, STEP_MIN - 1, -2)]

    def ledger_lines_for(self, clef: str, step: int) -> list[float]:
        if is_on_staff(step):
            return []
        # 加線只畫在線位（±6, ±8, …）；±5 是緊貼譜表的間，不需要加線
        if step > STEP_MAX:
            steps = range(STEP_MAX + 2, step + 1, 2)
        else:
            steps = range(STEP_MIN - 2, step - 1, -2)
        ys = [self.pixel_y(clef, s) for s in steps]
        logging.debug("ledger lines clef=%s step=%d -> %d line(s)", clef, step, len(ys))
        return ys

    @staticmethod
    def stem_down(step: int) -> bool:
        return step > 1
