# notes/sequencer.py
import itertools
import logging
import random
from typing import Optional
from config import SequencerConfig
from notes.model import CLEFS, Note

log = logging.getLogger(__name__)

class NoteSequencer:
    """Random note source for the drill.

    Every candidate gets a fresh id from the sequencer's own counter, so the
    render layer can tell a new note instance apart even when its position
    repeats. With `previous` given, up to `max_attempts` draws are made to
    land on a different (clef, step); the last draw is accepted otherwise.
    """
    def __init__(self, cfg: Optional[SequencerConfig] = None,
                 rng: Optional[random.Random] = None, first_id: int = 0):
        self.cfg = cfg or SequencerConfig()
        if self.cfg.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.cfg.step_min > self.cfg.step_max:
            raise ValueError("step_min must not exceed step_max")
        self.rng = rng if rng is not None else random.Random(self.cfg.seed)
        self._ids = itertools.count(first_id)

    def _candidate(self) -> Note:
        clef = CLEFS[0] if self.rng.random() < 0.5 else CLEFS[1]
        step = self.rng.randint(self.cfg.step_min, self.cfg.step_max)
        return Note.at(next(self._ids), clef, step)

    def next(self, previous: Optional[Note] = None) -> Note:
        note = self._candidate()
        if previous is None:
            return note
        for _ in range(self.cfg.max_attempts - 1):
            if note.position != previous.position:
                return note
            note = self._candidate()
        if note.position == previous.position:
            # 重抽用完仍重複：照樣接受
            log.debug("repeat accepted after %d attempts: %s", self.cfg.max_attempts, note.position)
        return note

    def prime(self, count: int = 3) -> list[Note]:
        out: list[Note] = []
        prev: Optional[Note] = None
        for _ in range(count):
            prev = self.next(prev)
            out.append(prev)
        return out
