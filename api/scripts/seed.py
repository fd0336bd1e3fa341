"""
Script to seed a local database with a demo user and a few paragraphs.
Existing rows are left alone; running it twice is harmless.

Usage:
    python scripts/seed.py
"""
import sys
import logging
from pathlib import Path

# Add the api directory to Python path so we can import from app
script_dir = Path(__file__).parent
api_dir = script_dir.parent
sys.path.insert(0, str(api_dir))

from sqlmodel import Session, select
from app.core.database import engine, init_db
from app.core.security import create_access_token
from app.models.models import User, Paragraph, DifficultyLevel, SubscriptionStatus

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

DEMO_EMAIL = "demo@easyenglish.app"

PARAGRAPHS = [
    {
        "title": "A Morning at the Market",
        "content": (
            "Every Saturday morning, Maria walks to the market near her house. "
            "She buys fresh bread, vegetables and sometimes flowers. "
            "The sellers know her name and always greet her with a smile."
        ),
        "difficulty": DifficultyLevel.BEGINNER,
        "topics": ["daily life", "shopping"],
    },
    {
        "title": "Working from Home",
        "content": (
            "Since the company changed its policy last year, many employees have been working from home. "
            "Some of them enjoy the flexibility, while others miss talking to their colleagues. "
            "Managers are still deciding whether the arrangement will become permanent."
        ),
        "difficulty": DifficultyLevel.INTERMEDIATE,
        "topics": ["work", "technology"],
    },
    {
        "title": "The Cost of Convenience",
        "content": (
            "Had consumers anticipated the environmental toll of single-use packaging, "
            "they might have resisted its spread far more vigorously. "
            "Instead, convenience became so deeply ingrained that reversing the habit now "
            "requires coordinated action from governments, manufacturers and shoppers alike."
        ),
        "difficulty": DifficultyLevel.ADVANCED,
        "topics": ["environment", "society"],
    },
]


def seed():
    init_db()
    with Session(engine) as session:
        try:
            user = session.exec(select(User).where(User.email == DEMO_EMAIL)).first()
            if not user:
                user = User(
                    email=DEMO_EMAIL,
                    name="Demo Learner",
                    native_language="es",
                    native_language_name="Spanish",
                    subscription_status=SubscriptionStatus.ACTIVE.value,
                )
                session.add(user)
                logger.info(f"Created demo user {DEMO_EMAIL}")

            created = 0
            for item in PARAGRAPHS:
                exists = session.exec(select(Paragraph).where(Paragraph.title == item["title"])).first()
                if exists:
                    continue
                session.add(Paragraph(
                    title=item["title"],
                    content=item["content"],
                    difficulty=item["difficulty"].value,
                    topics=item["topics"],
                    word_count=Paragraph.count_words(item["content"]),
                ))
                created += 1

            session.commit()
            session.refresh(user)
            logger.info(f"Created {created} paragraph(s)")
            logger.info(f"Bearer token for {DEMO_EMAIL}: {create_access_token(user.id)}")
        except Exception as e:
            session.rollback()
            logger.error("Error seeding database: %s", e, exc_info=True)
            raise


if __name__ == "__main__":
    logger.info("Starting seed...")
    try:
        seed()
        logger.info("Successfully completed!")
    except Exception:
        sys.exit(1)
