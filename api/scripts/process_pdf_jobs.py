"""
Script to drain the textbook job queue.

Runs every pending PdfJob (and running jobs abandoned by a dead worker) through
the PDF generator. Meant to be run periodically, e.g. from cron.

Usage:
    python scripts/process_pdf_jobs.py [--limit N] [--stale-after SECONDS]
"""
import sys
import argparse
import logging
from pathlib import Path

# Add the api directory to Python path so we can import from app
script_dir = Path(__file__).parent
api_dir = script_dir.parent
sys.path.insert(0, str(api_dir))

from sqlmodel import Session
from app.core.config import settings
from app.core.database import engine
from app.core.dependencies import get_storage_gateway
from app.services.pdf_service import PdfGenerator
from app.services.pdf_jobs import process_pending_pdf_jobs

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def main(limit=None, stale_after=900):
    generator = PdfGenerator(get_storage_gateway(), lock_ttl_seconds=settings.pdf_lock_ttl)
    if not generator.storage.is_configured:
        logger.error("AWS S3 is not configured; set AWS_S3_BUCKET and credentials")
        return 1

    with Session(engine) as session:
        counts = process_pending_pdf_jobs(
            session,
            generator,
            max_attempts=settings.pdf_job_max_attempts,
            limit=limit,
            stale_after_seconds=stale_after,
        )

    logger.info(f"Done: {counts['done']} succeeded, {counts['pending']} will retry, {counts['failed']} failed")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Process pending textbook PDF jobs")
    parser.add_argument("--limit", type=int, default=None, help="Maximum number of jobs to run")
    parser.add_argument("--stale-after", type=int, default=900, help="Seconds after which a running job is retried")
    args = parser.parse_args()

    try:
        sys.exit(main(limit=args.limit, stale_after=args.stale_after))
    except Exception as e:
        logger.error("Error while processing PDF jobs: %s", e, exc_info=True)
        sys.exit(1)
