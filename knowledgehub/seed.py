"""
Seed and reset the KnowledgeHub database.

Usage:
    python -m knowledgehub.seed
    python -m knowledgehub.seed --reset
    python -m knowledgehub.seed --email me@example.com --password s3cret

Sample posts are Markdown files with YAML front matter in seed_content/.
Categories and tags in the front matter are referenced by name.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

import frontmatter
from sqlalchemy.orm import Session

from knowledgehub.db.database import DB_PATH, SessionLocal, init_db
from knowledgehub.services import categories as categories_service
from knowledgehub.services import posts as posts_service
from knowledgehub.services import tags as tags_service
from knowledgehub.services import users as users_service

logger = logging.getLogger(__name__)

SEED_CONTENT_DIR = Path(__file__).parent / "seed_content"

DEFAULT_EMAIL = "admin@knowledgehub.com"
DEFAULT_PASSWORD = "admin123"

CATEGORIES = [
    {"name": "Technology", "description": "Tech articles and tutorials", "color": "#3B82F6"},
    {"name": "Programming", "description": "Coding tips and best practices", "color": "#10B981"},
    {"name": "Design", "description": "UI/UX and design principles", "color": "#F59E0B"},
    {"name": "Philosophy", "description": "Thoughts and ideas", "color": "#8B5CF6"},
    {"name": "Personal Growth", "description": "Self-improvement and learning", "color": "#EC4899"},
]

TAGS = [
    "Python", "FastAPI", "SQL", "Web Development", "Tutorial",
    "Best Practices", "Career", "Productivity", "Learning", "Thoughts",
]


def reset_database(db_path: str = DB_PATH) -> None:
    """Delete the SQLite file and its journal."""
    for path in (Path(db_path), Path(f"{db_path}-journal")):
        if path.exists():
            path.unlink()
            print(f"Deleted {path}")


def load_seed_post(file_path: Path) -> frontmatter.Post:
    with open(file_path, 'r', encoding='utf-8') as f:
        return frontmatter.load(f)


def seed_posts(db: Session, author_id: str, content_dir: Path = SEED_CONTENT_DIR) -> int:
    """Create one post per Markdown file. Returns the number created."""
    categories = {category.name: category.id for category in categories_service.list_categories(db)}
    tags = {tag.name: tag.id for tag in tags_service.list_tags(db)}

    created = 0
    for file_path in sorted(content_dir.glob('*.md')):
        fm_post = load_seed_post(file_path)
        metadata = fm_post.metadata

        posts_service.create_post(
            db,
            title=metadata.get('title', file_path.stem.replace('-', ' ').title()),
            content=fm_post.content,
            author_id=author_id,
            excerpt=metadata.get('excerpt'),
            cover_image=metadata.get('cover_image'),
            published=metadata.get('published', False),
            featured=metadata.get('featured', False),
            categories=[categories[name] for name in metadata.get('categories', []) if name in categories],
            tags=[tags[name] for name in metadata.get('tags', []) if name in tags]
        )
        created += 1

    return created


def seed_database(db: Session, email: str = DEFAULT_EMAIL, password: str = DEFAULT_PASSWORD) -> bool:
    """Fill an empty database. Returns False when it was already seeded."""
    if users_service.get_user_by_email(db, email):
        return False

    admin = users_service.create_user(db, email, "Admin User", password)

    for category in CATEGORIES:
        categories_service.create_category(db, **category)
    for name in TAGS:
        tags_service.create_tag(db, name)

    count = seed_posts(db, admin.id)
    logger.info(f"Seeded {len(CATEGORIES)} categories, {len(TAGS)} tags and {count} posts")
    return True


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Seed the KnowledgeHub database.")
    parser.add_argument("--reset", action="store_true", help="delete the database file first")
    parser.add_argument("--email", default=DEFAULT_EMAIL, help="admin login email")
    parser.add_argument("--password", default=DEFAULT_PASSWORD, help="admin login password")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    if args.reset:
        reset_database()

    init_db()

    db = SessionLocal()
    try:
        if seed_database(db, args.email, args.password):
            print("Database seeded.")
        else:
            print("Database already seeded. Skipping...")
    finally:
        db.close()

    print(f"\nLogin credentials:\nEmail: {args.email}\nPassword: {args.password}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
