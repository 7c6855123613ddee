# input/dispatcher.py
import logging
import pygame
from typing import Callable, Dict, Optional
from input.keymap import DEFAULT_KEYMAP, normalize_letter

class InputDispatcher:
    """Turns key presses and letter-button clicks into submit(letter) calls."""
    def __init__(self, submit: Callable[[str], object],
                 keymap: Optional[Dict[int, str]] = None,
                 buttons: Optional[Callable[[], Dict[str, pygame.Rect]]] = None):
        self.submit = submit
        self.keymap: Dict[int, str] = dict(DEFAULT_KEYMAP if keymap is None else keymap)
        self.buttons = buttons or (lambda: {})

    def letter_for_event(self, e: pygame.event.Event) -> Optional[str]:
        if e.type == pygame.KEYDOWN:
            if e.key in self.keymap:
                return self.keymap[e.key]
            return normalize_letter(getattr(e, "unicode", ""))
        if e.type == pygame.MOUSEBUTTONDOWN and getattr(e, "button", 1) == 1:
            mx, my = e.pos
            for letter, rect in self.buttons().items():
                if rect.collidepoint(mx, my):
                    return letter
        return None

    def handle_event(self, e: pygame.event.Event) -> Optional[str]:
        letter = self.letter_for_event(e)
        if letter is None:
            return None
        logging.debug("input %s -> %s", pygame.event.event_name(e.type), letter)
        self.submit(letter)
        return letter
