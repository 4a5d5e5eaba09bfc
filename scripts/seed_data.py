#!/usr/bin/env python3
"""
Seed script to populate the database with sample tags and logs.

Run after init_db.py:
    python scripts/seed_data.py
"""

import asyncio

from shumilog_tags.core.database import session_scope
from shumilog_tags.core.logging import correlation_scope, setup_logging
from shumilog_tags.errors import DuplicateNameError
from shumilog_tags.models import Log
from shumilog_tags.schemas import TagCreate
from shumilog_tags.services import LogTagService, TagService

SEED_USER = "seed-user"

# Tags; hashtags in descriptions become associations (missing tags are created)
TAGS = [
    {
        "name": "Anime",
        "description": "Japanese animation. See #manga and #{Light Novel}.",
        "metadata": {"category": "media"},
    },
    {
        "name": "Attack on Titan",
        "description": "#{Dark Fantasy} #Anime by #{Studio WIT}, later #MAPPA",
        "metadata": {"year": 2013},
    },
    {
        "name": "進撃の巨人",
        "description": "#{Attack on Titan} の原題。#アニメ",
        "metadata": {"lang": "ja"},
    },
    {
        "name": "Frieren",
        "description": "#Anime #{Fantasy} by #Madhouse",
        "metadata": {"year": 2023},
    },
    {
        "name": "Squash",
        "description": "Racket sport. #sport #{Indoor Sports}",
        "metadata": {},
    },
]

# Logs: (title, content); hashtags link the log to tags
LOGS = [
    ("Finale night", "Finally finished #{Attack on Titan}. What a ride."),
    ("Weekend binge", "#Frieren episodes 1-10, then some #manga"),
    ("Rewatch", "Rewatching #{進撃の巨人} with friends #Anime"),
    ("Court time", "Two hours of #Squash"),
]


async def seed():
    print("=" * 60)
    print("Seeding database with sample tags and logs")
    print("=" * 60)

    async with session_scope() as db:
        service = TagService(db)

        print("\n🏷  Creating tags...")
        for tag_data in TAGS:
            try:
                tag = await service.create_tag(TagCreate(**tag_data), created_by=SEED_USER)
            except DuplicateNameError:
                print(f"  ⚠️ {tag_data['name']} already exists, skipping")
                continue
            associated = await service.get_tag_associations(tag.id)
            names = ", ".join(t.name for t in associated) or "-"
            print(f"  ✅ {tag.name} -> {names}")

    async with session_scope() as db:
        log_service = LogTagService(db)

        print("\n📓 Creating logs...")
        for title, content in LOGS:
            log = Log(user_id=SEED_USER, title=title, content_md=content)
            db.add(log)
            await db.flush()
            tags = await log_service.link_log(log.id, content, acting_user=SEED_USER)
            print(f"  ✅ {title}: {', '.join(t.name for t in tags)}")

    async with session_scope() as db:
        popular = await TagService(db).get_popular_tags(limit=5)
        print("\n🔥 Popular tags: " + ", ".join(t.name for t in popular))

    print("\n" + "=" * 60)
    print("✅ Done!")
    print("=" * 60)


async def main():
    setup_logging(log_level="INFO", log_format="simple")
    with correlation_scope():
        await seed()


if __name__ == "__main__":
    asyncio.run(main())
