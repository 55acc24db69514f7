# app/db/seed.py
import asyncio
import logging
import random
from datetime import timezone
from faker import Faker
from tqdm import tqdm

from app.core.config import settings
from app.core.security import hash_password
from app.core.exceptions import UserAlreadyExistsException
from app.db.directory import PostgresDirectory
from app.schemas.task_schema import TaskCreate

logger = logging.getLogger(__name__)

fake = Faker()

NUM_USERS = 20
MIN_TASKS_PER_USER = 2
MAX_TASKS_PER_USER = 8
DEMO_PASSWORD = "mindmate123"

CATEGORIES = ["general", "work", "health", "learning", "personal"]
PRIORITIES = ["low", "medium", "high"]


async def seed():
    directory = PostgresDirectory(settings)
    await directory.connect()
    hashed_password = hash_password(DEMO_PASSWORD)

    try:
        async with directory.session() as repos:
            created = 0
            for _ in tqdm(range(NUM_USERS), desc="Creating users"):
                try:
                    user = await repos.users.insert(
                        email=fake.unique.email(),
                        name=fake.name(),
                        hashed_password=hashed_password,
                    )
                except UserAlreadyExistsException:
                    continue
                created += 1

                for _ in range(random.randint(MIN_TASKS_PER_USER, MAX_TASKS_PER_USER)):
                    due = fake.date_time_between(start_date="-3d", end_date="+14d", tzinfo=timezone.utc) if random.random() < 0.6 else None
                    await repos.tasks.create(user.id, TaskCreate(
                        title=fake.sentence(nb_words=4).rstrip("."),
                        description=fake.sentence(nb_words=10),
                        priority=random.choice(PRIORITIES),
                        category=random.choice(CATEGORIES),
                        due_date=due,
                    ))

        logger.info("Seeded %d users (password %r).", created, DEMO_PASSWORD)
    finally:
        await directory.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed())
