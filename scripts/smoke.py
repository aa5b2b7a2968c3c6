# scripts/smoke.py
"""
Smoke Test Script for threadleak.

Starts a small pool of worker threads, stops some of them, and lets the leak
check report the rest.

Usage
-----
1. Stop every worker (the check passes):
    $ uv run python scripts/smoke.py

2. Leave two workers running (the check reports them, grouped):
    $ uv run python scripts/smoke.py --workers 4 --leak 2

3. Through the CLI, which also sets the exit code:
    $ uv run threadleak run scripts/smoke.py -- --leak 2
"""

import argparse
import logging
import queue
import sys
import threading
from pathlib import Path

from dotenv import load_dotenv

import threadleak
from threadleak.core.errors import LeakError

# --------------------------------------------------------------------------- #
# Environment Setup
# --------------------------------------------------------------------------- #
env_path = Path(".env")
if env_path.exists():
    load_dotenv(env_path)
    print("✅ Loaded .env file")

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

STOP = object()


def worker(jobs: "queue.Queue[object]") -> None:
    """Consume jobs until the stop sentinel arrives."""
    while jobs.get() is not STOP:
        pass


def main() -> None:
    """Execute the smoke test workflow."""
    parser = argparse.ArgumentParser(description="Run threadleak Smoke Test")
    parser.add_argument("--workers", "-n", type=int, default=4, help="Threads to start")
    parser.add_argument("--leak", "-l", type=int, default=0, help="Threads to leave running")
    parser.add_argument("--max-wait", "-w", type=float, default=0.5, help="Seconds to wait")
    args = parser.parse_args()

    # 1. Baseline: whatever runs now is not ours to report.
    baseline = threadleak.ignore_current()

    # 2. Start the pool; every worker blocks on its own queue.
    queues: list[queue.Queue[object]] = [queue.Queue() for _ in range(args.workers)]
    threads = [
        threading.Thread(target=worker, args=(q,), name=f"worker-{i}", daemon=True)
        for i, q in enumerate(queues)
    ]
    for t in threads:
        t.start()
    print(f"\n🧵 Started {len(threads)} worker(s)")

    # 3. Stop all but `--leak` of them.
    keep = max(0, min(args.leak, len(threads)))
    for q in queues[keep:]:
        q.put(STOP)
    print(f"🛑 Stopped {len(threads) - keep}, leaving {keep} running")

    # 4. Inspection Phase
    print("\n" + "=" * 60)
    try:
        threadleak.check(args.max_wait, baseline)
    except LeakError as exc:
        print(f"❌ {len(exc.traces)} thread(s) leaked:\n")
        print(exc.traces)
        sys.exit(1)
    finally:
        for q in queues[:keep]:
            q.put(STOP)
    print("✅ No leaked threads")
    print("=" * 60)


if __name__ == "__main__":
    main()
