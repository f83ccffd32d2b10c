import logging
import os
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from app.core.config import settings
from app.core.database import SessionLocal
from app.services.grading_worker import grading_worker

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


async def process_pending_grading_jobs():
    db = SessionLocal()
    try:
        processed = await grading_worker.run_once(db, limit=settings.AI_GRADING_BATCH_SIZE)
        if processed:
            logger.info(f"AI grading run finished: {processed} job(s) processed")
    except Exception as e:
        logger.error(f"Error processing AI grading jobs: {e}", exc_info=True)
        db.rollback()
    finally:
        db.close()


def start_scheduler():
    if os.getenv("TESTING") == "true":
        logger.info("Scheduler disabled in test environment")
        return

    if not scheduler.running:
        scheduler.add_job(
            process_pending_grading_jobs,
            'interval',
            seconds=settings.AI_GRADING_POLL_SECONDS,
            id='ai_grading_jobs',
            name='Process queued AI grading jobs',
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )
        scheduler.start()
        logger.info("Scheduler started with AI grading job")


def stop_scheduler():
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Scheduler stopped")
