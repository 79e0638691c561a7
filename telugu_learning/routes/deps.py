import random

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from telugu_learning.database import get_db
from telugu_learning.services.progress_store import ProgressStore

_rng = random.Random()


async def get_store(db: AsyncSession = Depends(get_db)) -> ProgressStore:
    return ProgressStore(db)


def get_rng() -> random.Random:
    return _rng
