"""
Скрипт для инициализации базы данных.

Создаёт все таблицы напрямую через SQLAlchemy (на SQLite вместе с FTS5 индексом).
Для разработки и тестов; в проде схему ведут миграции Alembic.

    python init_db.py           # создать недостающие таблицы
    python init_db.py --reset   # удалить всё и создать заново
"""

import argparse
import asyncio

from shumilog_tags.core.database import drop_db, init_db


async def main(reset: bool):
    if reset:
        print("Удаление таблиц...")
        await drop_db()
    print("Создание таблиц...")
    await init_db()
    print("✓ Таблицы созданы успешно!")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the tag engine tables")
    parser.add_argument("--reset", action="store_true", help="drop existing tables first")
    asyncio.run(main(parser.parse_args().reset))
