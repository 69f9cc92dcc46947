"""
Background Tasks Package.

Taskiq-based background processing with a Redis broker. The only task is
the scheduled stale-trash sweep.

CLI Commands:
    python cli.py --service worker      # executes tasks
    python cli.py --service scheduler   # enqueues scheduled tasks
    python cli.py --service sweep-trash # runs the sweep once, no Redis needed

Important:
    Run only ONE scheduler instance to avoid duplicate task execution.
"""

from notevault.backend.tasks.broker import get_broker
from notevault.backend.tasks.scheduled import purge_stale_trash, register_scheduled_tasks
from notevault.backend.tasks.scheduler import get_scheduler

__all__ = [
    "get_broker",
    "get_scheduler",
    "purge_stale_trash",
    "register_scheduled_tasks",
]
