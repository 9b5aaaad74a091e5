"""Newsletter scheduling with Celery beat."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import List

from celery import Celery
from celery.schedules import crontab

from media_newsletter.models.settings import Settings

logger = logging.getLogger(__name__)

TASK_NAME = "scheduler.scheduler.generate_newsletter_task"


def missing_requirements(settings: Settings) -> List[str]:
    """Names of configuration areas still incomplete for an unattended run."""
    missing = []
    if not settings.recipient_list:
        missing.append("recipients")
    if not (settings.smtp_server and settings.smtp_username and settings.sender_email):
        missing.append("smtp")
    if not settings.provider_config().is_configured():
        missing.append("ai")
    return missing


def beat_schedule(settings: Settings) -> dict:
    return {
        "generate-daily-newsletter": {
            "task": TASK_NAME,
            "schedule": crontab(hour=settings.schedule_hour, minute=0),
        },
    }


_settings = Settings()

app = Celery("media-newsletter-scheduler")

app.conf.update(
    broker_url=_settings.celery_broker_url,
    result_backend=_settings.celery_broker_url,
    timezone="UTC",
    enable_utc=True,
    beat_schedule=beat_schedule(_settings),
)


def _report_progress(task, percent: int) -> None:
    # update_state needs a task id and a result backend, i.e. a real worker
    if task.request.id and not task.request.is_eager:
        task.update_state(state="PROGRESS", meta={"progress": percent})


def _result(status: str, **extra) -> dict:
    return {
        "status": status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        **extra,
    }


@app.task(bind=True, name=TASK_NAME)
def generate_newsletter_task(self) -> dict:
    """Generate and send the newsletter in-process."""
    from media_newsletter.core.newsletter import NewsletterService

    logger.info("Starting scheduled newsletter generation task")
    _report_progress(self, 0)

    settings = Settings()
    missing = missing_requirements(settings)
    if missing:
        logger.warning(
            f"Newsletter service is not properly configured ({', '.join(missing)}), skipping"
        )
        _report_progress(self, 100)
        return _result("skipped", reason=f"incomplete configuration: {', '.join(missing)}")

    _report_progress(self, 10)

    if not settings.enable_scheduled_task:
        logger.info("Scheduled newsletter generation is disabled in configuration")
        _report_progress(self, 100)
        return _result("skipped", reason="scheduled task disabled")

    _report_progress(self, 20)

    logger.info("Generating and sending newsletter...")
    report = asyncio.run(NewsletterService(settings).generate_and_send())
    _report_progress(self, 90)

    if report.succeeded:
        logger.info("Newsletter generation and sending completed successfully")
        status = "success"
    elif report.skipped:
        logger.info(f"Newsletter skipped: {report.reason}")
        status = "skipped"
    else:
        logger.warning("Newsletter generation completed but may have had some failures")
        status = "error"

    _report_progress(self, 100)
    return _result(status, **report.model_dump())


if __name__ == "__main__":
    app.start()
