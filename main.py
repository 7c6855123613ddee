# main.py
import sys, os
sys.path.append(os.path.dirname(__file__))  # 確保能找到 config.py

import argparse
import json
import logging
from config import AppConfig, AudioConfig, RenderConfig, SequencerConfig
from utils.crashlog import setup_crashlog, log_exception, log_dir

def _init_logging(level=logging.INFO):
    logs = log_dir()
    log_path = os.path.join(logs, "app.log")

    if logging.getLogger().handlers:
        return

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        encoding="utf-8"
    )
    try:
        from logging.handlers import RotatingFileHandler
        fh = RotatingFileHandler(log_path, maxBytes=2*1024*1024, backupCount=3, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        logging.getLogger().addHandler(fh)
    except Exception:
        logging.warning("無法建立記錄檔 %s", log_path)

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Grand staff note-reading drill")
    ap.add_argument('--seed', type=int, default=None, help="RNG seed for the note sequence")
    ap.add_argument('--mute', action='store_true', help="Disable answer tones")
    ap.add_argument('--volume', type=float, default=0.35, help="Peak tone gain (0..1)")
    ap.add_argument('--fps', type=int, default=60)
    ap.add_argument('--keymap', default=None, help="JSON file mapping key names to letters")
    ap.add_argument('--log-dir', default=None, help="Directory for app.log and crash reports")
    ap.add_argument('--debug', action='store_true')
    return ap

def config_from_args(args: argparse.Namespace) -> AppConfig:
    return AppConfig(
        render=RenderConfig(fps=args.fps),
        audio=AudioConfig(enabled=not args.mute, peak=max(0.001, min(1.0, args.volume))),
        sequencer=SequencerConfig(seed=args.seed),
        log_dir=args.log_dir,
    )

def load_keymap(path):
    from input.keymap import deserialize_keymap
    with open(path, "r", encoding="utf-8") as f:
        return deserialize_keymap(json.load(f))

def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    cfg = config_from_args(args)
    setup_crashlog(cfg.log_dir)
    _init_logging(logging.DEBUG if args.debug else logging.INFO)
    logging.info("應用程式啟動")

    try:
        keymap = load_keymap(args.keymap) if args.keymap else None
        from app import App
        App(cfg, keymap=keymap).run()
    except Exception as e:
        # 唯一寫 error 報告的地方，App.run 只負責收尾
        path = log_exception("Top-level exception", e)
        logging.error("未捕捉的例外：%s（報告：%s）", e, path, exc_info=True)
        print(f"程式發生錯誤，請到 {log_dir()} 資料夾看 app.log 與 error-*.txt")
        return 1
    return 0

if __name__ == '__main__':
    sys.exit(main())
