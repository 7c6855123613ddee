# ========================= input/keymap.py =========================
import pygame
from typing import Dict, Optional
from notes.model import LETTERS

# 預設配置：字母鍵直接對應音名（大小寫都可）
DEFAULT_KEYMAP: Dict[int, str] = {
    pygame.K_c: "C",
    pygame.K_d: "D",
    pygame.K_e: "E",
    pygame.K_f: "F",
    pygame.K_g: "G",
    pygame.K_a: "A",
    pygame.K_b: "B",
}

def normalize_letter(text: str) -> Optional[str]:
    """'c' / 'C' -> 'C'; anything that isn't a single natural letter -> None."""
    if not isinstance(text, str):
        return None
    t = text.strip().upper()
    return t if t in LETTERS else None

def keycode_to_name(k: int) -> str:
    try:
        return pygame.key.name(k)
    except Exception:
        return str(k)

def name_to_keycode(name: str) -> int:
    """把 'c', 'space' 等名稱轉回 pygame 的 keycode。"""
    try:
        return pygame.key.key_code(name)
    except Exception:
        # 允許純數字 keycode
        try:
            return int(name)
        except Exception:
            raise ValueError(f"Unknown key name: {name}")

def serialize_keymap(kmap: Dict[int, str]) -> dict:
    """以 key 名稱輸出，便於人看與儲存 JSON。"""
    return {keycode_to_name(k): v for k, v in kmap.items()}

def deserialize_keymap(obj: dict) -> Dict[int, str]:
    """從名稱->音名 的 JSON 還原為 keycode->音名。"""
    out: Dict[int, str] = {}
    for kname, letter in obj.items():
        norm = normalize_letter(str(letter))
        if norm is None:
            raise ValueError(f"Key {kname!r} bound to invalid letter {letter!r}")
        out[name_to_keycode(str(kname))] = norm
    return out
