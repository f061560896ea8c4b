# audio_annote/__main__.py
from __future__ import annotations

import argparse
from typing import List, Optional

from .app import run_app


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="audio-annote", description="Audio region annotation tool")
    parser.add_argument("audio", nargs="?", help="audio file to open")
    parser.add_argument("--root", dest="root_dir", help="data root holding config.json")
    args = parser.parse_args(argv)
    return run_app(audio_path=args.audio, root_dir=args.root_dir)


if __name__ == "__main__":
    raise SystemExit(main())
