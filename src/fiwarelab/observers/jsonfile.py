# src/fiwarelab/observers/jsonfile.py
from __future__ import annotations
import json
from pathlib import Path
from .interface import Observer
from .events import BaseEvent

class JsonFileObserver(Observer):
    """Appends one JSON line per event, e.g. ~/.fiwarelab/logs/<run_id>.jsonl"""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def notify(self, event: BaseEvent) -> None:
        record = {"event": event.__class__.__name__, **event.dict()}
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(record, sort_keys=True) + "\n")
