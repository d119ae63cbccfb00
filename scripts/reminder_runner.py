"""Run the reminder pass on a fixed interval.

    python scripts/reminder_runner.py [--interval 30]

Each pass runs send_appointment_reminders.py in a child process. A tick
that fires while the previous pass is still running is skipped. Stops on
SIGINT or SIGTERM.
"""
import argparse
import logging
import signal
import subprocess
import sys
import threading
from pathlib import Path
from typing import Optional

_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_ROOT))

from settings import reminder_interval_seconds

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
logger = logging.getLogger(__name__)

REMINDER_SCRIPT = _ROOT / "scripts" / "send_appointment_reminders.py"


class ReminderRunner:
    """Spawns one reminder pass per tick, never two at once."""

    def __init__(self, interval: int, script: Path = REMINDER_SCRIPT):
        self.interval = interval
        self.script = script
        self.process: Optional[subprocess.Popen] = None
        self._stop = threading.Event()

    @property
    def running(self) -> bool:
        return self.process is not None and self.process.poll() is None

    def tick(self) -> bool:
        """Start a pass unless one is in progress. Returns True when a pass was started."""
        if self.running:
            logger.info("Previous reminder pass still running (pid %s), skipping", self.process.pid)
            return False
        if self.process is not None and self.process.returncode:
            logger.warning("Previous reminder pass exited with code %s", self.process.returncode)
        self.process = subprocess.Popen([sys.executable, str(self.script)], cwd=str(_ROOT))
        logger.info("Started reminder pass (pid %s)", self.process.pid)
        return True

    def stop(self, *_args) -> None:
        logger.info("Stopping reminder runner")
        self._stop.set()

    def run_forever(self) -> None:
        logger.info("Reminder runner started, every %ss", self.interval)
        self.tick()
        while not self._stop.wait(self.interval):
            self.tick()
        if self.running:
            self.process.wait()


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run appointment reminders on an interval")
    parser.add_argument(
        "--interval", type=int, default=None,
        help="Seconds between passes (default: REMINDER_INTERVAL_SECONDS or 30)",
    )
    return parser


if __name__ == "__main__":
    args = _build_arg_parser().parse_args()
    runner = ReminderRunner(args.interval or reminder_interval_seconds())
    signal.signal(signal.SIGINT, runner.stop)
    signal.signal(signal.SIGTERM, runner.stop)
    runner.run_forever()
