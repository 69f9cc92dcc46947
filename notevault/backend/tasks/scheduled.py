"""
Scheduled Background Tasks.

Tasks that run on a schedule (cron-based). They are registered with the
broker together with schedule metadata that TaskiqScheduler reads via
LabelScheduleSource.

Cron Format:
    ┌───────────── minute (0-59)
    │ ┌───────────── hour (0-23)
    │ │ ┌───────────── day of month (1-31)
    │ │ │ ┌───────────── month (1-12)
    │ │ │ │ ┌───────────── day of week (0-6, Sun=0)
    │ │ │ │ │
    * * * * *

Task functions are plain async functions and can be called directly
without Redis:

    from notevault.backend.tasks.scheduled import purge_stale_trash
    result = await purge_stale_trash()
"""

from typing import Any

from notevault.backend.core.config import get_app_config
from notevault.backend.core.database import get_session_factory
from notevault.backend.core.logging import get_logger, log_with_source
from notevault.backend.core.utils import utc_days_ago, utc_now
from notevault.backend.services.note import NoteService
from notevault.backend.storage.attachments import get_attachment_store, purge_blobs

logger = get_logger(__name__)


async def purge_stale_trash(retention_days: int | None = None) -> dict[str, Any]:
    """
    Permanently delete notes that have been in the trash past retention.

    Runs in its own session. Attachment blobs of deleted notes are purged
    only after the delete has committed. Running it twice, or alongside
    another sweep, is harmless.

    Args:
        retention_days: Override notes.trash.retention_days

    Returns:
        Sweep statistics
    """
    notes_config = get_app_config().notes
    days = retention_days if retention_days is not None else notes_config.trash.retention_days
    cutoff = utc_days_ago(days)

    log_with_source(logger, "tasks", "info", "Starting stale trash sweep", retention_days=days)

    async with get_session_factory()() as session:
        try:
            result = await NoteService(session).purge_stale_trash(cutoff)
            await session.commit()
        except Exception:
            await session.rollback()
            raise

    blobs_purged = await purge_blobs(get_attachment_store(), result.storage_keys)

    summary = {
        "status": "completed",
        "retention_days": days,
        "deleted_notes": result.deleted_notes,
        "attachments_purged": blobs_purged,
        "completed_at": utc_now().isoformat(),
    }
    log_with_source(logger, "tasks", "info", "Stale trash sweep completed", **summary)
    return summary


def scheduled_tasks() -> dict[str, dict[str, Any]]:
    """Schedule configuration, built from notes.yaml."""
    trash = get_app_config().notes.trash
    return {
        "purge_stale_trash": {
            "function": purge_stale_trash,
            "schedule": [{"cron": trash.sweep_cron}],
            "retry_on_error": False,
            "description": "Permanently delete notes trashed longer than the retention window",
        },
    }


def register_scheduled_tasks(broker) -> dict[str, Any]:
    """
    Register scheduled task functions with the Taskiq broker.

    Skipped entirely when features.trash_sweep_enabled is off.

    Returns:
        Dict mapping task names to registered task objects
    """
    if not get_app_config().features.trash_sweep_enabled:
        logger.info("Trash sweep disabled; no scheduled tasks registered")
        return {}

    registered = {}
    for task_name, config in scheduled_tasks().items():
        registered[task_name] = broker.task(
            task_name=task_name,
            schedule=config["schedule"],
            retry_on_error=config["retry_on_error"],
        )(config["function"])

    logger.info(
        "Scheduled tasks registered",
        extra={"task_count": len(registered), "tasks": list(registered)},
    )
    return registered
