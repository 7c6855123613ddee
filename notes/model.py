# notes/model.py
from dataclasses import dataclass
from typing import Literal

Letter = Literal["C", "D", "E", "F", "G", "A", "B"]
Clef = Literal["treble", "bass"]
Feedback = Literal["idle", "correct", "wrong"]

LETTERS: tuple[str, ...] = ("C", "D", "E", "F", "G", "A", "B")
CLEFS: tuple[str, ...] = ("treble", "bass")

@dataclass(frozen=True)
class Note:
    id: int         # 每次產生都不同，給動畫判斷「新音符」用
    clef: Clef
    staff_step: int # 相對於中間線的半格數
    letter: Letter

    @classmethod
    def at(cls, note_id: int, clef: str, staff_step: int) -> "Note":
        """Build a note whose letter is derived from its staff position."""
        from notes.staff import letter_for_step
        return cls(id=note_id, clef=clef, staff_step=staff_step,
                   letter=letter_for_step(clef, staff_step))

    @property
    def position(self) -> tuple[str, int]:
        return (self.clef, self.staff_step)
