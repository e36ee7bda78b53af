"""
ISAAC Feel Recorder
Writes JSONL logs to ~/.cache/isaacgesture/feel_logs/feel_<timestamp>.jsonl
One line = one published ControlEvent plus the interpreter readings behind it.
"""

from __future__ import annotations

import json
import time
from dataclasses import asdict
from pathlib import Path
from typing import IO, Optional

from isaacgesture.core.types import ControlEvent
from isaacgesture.interpreter.state_machine import Interpreter


def log_path() -> Path:
    outdir = Path.home() / ".cache" / "isaacgesture" / "feel_logs"
    outdir.mkdir(parents=True, exist_ok=True)
    ts = time.strftime("%Y%m%d_%H%M%S")
    return outdir / f"feel_{ts}.jsonl"


class FeelRecorder:
    """Bus subscriber: one JSON line per ControlEvent."""

    def __init__(self, fp: IO[str], interp: Optional[Interpreter] = None) -> None:
        self.fp = fp
        self.interp = interp

    @classmethod
    def open(cls, path: Path, interp: Optional[Interpreter] = None) -> "FeelRecorder":
        path = Path(path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        return cls(open(path, "a", buffering=1), interp)

    def __call__(self, ev: ControlEvent) -> None:
        rec = asdict(ev)
        rec["kind"] = ev.kind.value
        if self.interp is not None:
            rec.update({
                "state": self.interp.state.value,
                "counter": self.interp.counter,
                "baseline": self.interp.baseline,
                "distance": self.interp.last_distance,
                "delta": self.interp.last_delta,
            })
        self.fp.write(json.dumps(rec) + "\n")

    def close(self) -> None:
        self.fp.close()


if __name__ == "__main__":
    p = log_path()
    print("[FeelRecorder] run the webcam runtime with FEEL_LOG_PATH to record:")
    print(f"  FEEL_LOG_PATH='{p}' python -m isaacgesture.runtime.run_webcam")
