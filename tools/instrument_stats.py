#!/usr/bin/env python3
"""Count note-on events per General MIDI instrument across a directory of .mid files."""

from __future__ import annotations

import argparse
from pathlib import Path
import sys

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from smf.file import SMFFile  # noqa: E402
from smf.stats import InstrumentStats  # noqa: E402


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("dir", type=Path, help="Directory to scan for .mid files")
    args = parser.parse_args(argv)

    paths = sorted(args.dir.glob("*.mid"))
    if not paths:
        print(f"Didn't find any MIDI (.mid) files in dir {args.dir}.", file=sys.stderr)
        return 1

    stats = InstrumentStats()
    for i, path in enumerate(paths, start=1):
        print(f"Scanning file {i}/{len(paths)}: {path}")
        try:
            smf = SMFFile.load(path)
        except (OSError, ValueError) as exc:
            print(f"Failed analyzing file {path}: {exc}", file=sys.stderr)
            continue
        stats.add_file(smf)

    for line in stats.report():
        print(line)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
