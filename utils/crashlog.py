# utils/crashlog.py
import os, sys, faulthandler, datetime, traceback, threading, logging
from typing import Callable, Dict, Optional

_fault_file = None
_dir: Optional[str] = None
_context: Optional[Callable[[], Dict[str, object]]] = None

def configure(directory: Optional[str] = None):
    """Where crash / error / app.log files go; None means ./logs."""
    global _dir
    _dir = directory

def set_context(provider: Optional[Callable[[], Dict[str, object]]]):
    """每個 crash / error 檔案開頭會寫入 provider() 的內容（seed、目前佇列等）。"""
    global _context
    _context = provider

def log_dir() -> str:
    d = _dir or os.path.join(getattr(sys, "_MEIPASS", os.getcwd()), "logs")
    os.makedirs(d, exist_ok=True)
    return d

def _new_log_path(prefix: str = "crash") -> str:
    stamp = datetime.datetime.now().strftime("%Y%m%d-%H%M%S-%f")
    return os.path.join(log_dir(), f"{prefix}-{stamp}.txt")

def _write_context(out):
    if _context is None:
        return
    try:
        info = _context()
    except Exception as e:
        out.write(f"(session context unavailable: {e})\n")
        return
    for k, v in info.items():
        out.write(f"{k}: {v}\n")

def _write_report(prefix: str, heading: str, exc_type, exc, tb) -> str:
    path = _new_log_path(prefix)
    with open(path, "w", encoding="utf-8") as out:
        out.write(heading + "\n")
        out.write("=" * 60 + "\n")
        _write_context(out)
        out.write("-" * 60 + "\n")
        out.write("".join(traceback.format_exception(exc_type, exc, tb)))
    return path

def setup_crashlog(directory: Optional[str] = None):
    global _fault_file
    if directory is not None:
        configure(directory)
    try:
        if _fault_file is None:
            _fault_file = open(_new_log_path("native"), "w", encoding="utf-8")
        faulthandler.enable(_fault_file, all_threads=True)
    except Exception:
        _fault_file = None

    def _hook(exc_type, exc, tb):
        try:
            _write_report("crash", "UNCAUGHT EXCEPTION", exc_type, exc, tb)
        finally:
            sys.__excepthook__(exc_type, exc, tb)
    sys.excepthook = _hook

    def _thread_hook(args):
        _hook(args.exc_type, args.exc_value, args.exc_traceback)
    threading.excepthook = _thread_hook

def log_exception(title: str, exc: BaseException) -> Optional[str]:
    """Write an error report with the session context; returns its path."""
    try:
        return _write_report("error", f"[{title}] {type(exc).__name__}: {exc}",
                             type(exc), exc, exc.__traceback__)
    except OSError:
        logging.warning("無法寫入錯誤報告（%s）", log_dir())
        return None
