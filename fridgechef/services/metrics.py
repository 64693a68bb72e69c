from __future__ import annotations

import io
import json
import os
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

from fridgechef.config import Settings


# Cross-platform file lock (fcntl for *nix; msvcrt for Windows)
@contextmanager
def _locked(path: str) -> Iterator[io.FileIO]:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    f = open(path, "a+b")  # create if missing
    locker = ("none", None)
    try:
        try:
            import fcntl  # type: ignore
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            locker = ("fcntl", None)
        except ImportError:
            # no fcntl or msvcrt: the ImportError reaches log_latency, which drops the line
            import msvcrt  # type: ignore
            msvcrt.locking(f.fileno(), msvcrt.LK_LOCK, 1)
            locker = ("msvcrt", 1)
        yield f
    finally:
        if locker[0] == "fcntl":
            import fcntl  # type: ignore
            fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        elif locker[0] == "msvcrt":
            import msvcrt  # type: ignore
            msvcrt.locking(f.fileno(), msvcrt.LK_UNLCK, locker[1])
        f.close()


class MetricsLogger:
    """Append-only JSONL logger for latency metrics under data/.

    Writes one JSON object per line with fields:
      - ts: ISO timestamp (UTC)
      - kind: "latency"
      - name: short name (e.g., "extract_ingredients", "recipe_images")
      - origin: "backend" | "frontend"
      - duration_ms: float
      - extra: optional dict with contextual fields
    """

    def __init__(self, settings: Optional[Settings] = None, filename: str = "latency_log.jsonl") -> None:
        self.settings = settings or Settings()
        self.path = os.path.join(self.settings.data_dir, filename)

    def log_latency(
        self,
        name: str,
        duration_ms: float,
        origin: str,
        extra: Optional[Dict[str, Any]] = None,
        corr_id: Optional[str] = None,
    ) -> None:
        entry = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "kind": "latency",
            "name": name,
            "origin": origin,
            "duration_ms": float(duration_ms),
        }
        if corr_id:
            entry["corr"] = corr_id
        if extra:
            entry["extra"] = extra
        line = (json.dumps(entry, ensure_ascii=False, separators=(",", ":")) + "\n").encode("utf-8")
        try:
            with _locked(self.path) as f:
                f.seek(0, os.SEEK_END)
                f.write(line)
                f.flush()
                os.fsync(f.fileno())
        except Exception:
            # Metrics should never impact user flows; swallow errors.
            pass

    @contextmanager
    def timed(self, name: str, extra: Optional[Dict[str, Any]] = None) -> Iterator[Dict[str, Any]]:
        """Time a backend block; callers may add to the yielded extra dict."""
        ctx: Dict[str, Any] = dict(extra or {})
        t0 = time.perf_counter()
        try:
            yield ctx
        except Exception:
            ctx["failed"] = True
            raise
        finally:
            self.log_latency(name, (time.perf_counter() - t0) * 1000.0, origin="backend", extra=ctx)
