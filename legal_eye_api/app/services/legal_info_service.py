"""
Service layer for the legal-information knowledgebase.

Articles are grouped by category and carry a list of tags stored as
JSON.  Listings, search, category pages, popular and related articles
only ever show published articles; an unpublished article can still be
fetched by id.  Reading an article increments its ``views`` counter.

Only administrators create, update or delete articles; the check is
done by the endpoint.
"""

import json
import logging
import sqlite3
from typing import Any, Dict, List

from ..core.db import Database
from ..core.errors import NotFoundError, ValidationFailed
from ..schemas.legal_info import ArticleCreate, ArticleRead, ArticleUpdate

logger = logging.getLogger(__name__)

RELATED_LIMIT = 3
POPULAR_LIMIT = 10


class LegalInfoService:
    """Service class for managing legal articles."""

    @classmethod
    async def list_articles(cls, db: Database) -> List[ArticleRead]:
        """All published articles, newest first."""
        with db.cursor() as cursor:
            rows = cursor.execute(
                "SELECT * FROM legal_info WHERE is_published = 1 ORDER BY created_at DESC, id DESC"
            ).fetchall()
        return [cls._row_to_article(row) for row in rows]

    @classmethod
    async def search_articles(cls, db: Database, query: str) -> List[ArticleRead]:
        """Published articles whose title, summary or content contain ``query``."""
        query = (query or "").strip()
        if not query:
            raise ValidationFailed("Search query is required")
        pattern = f"%{query}%"
        with db.cursor() as cursor:
            rows = cursor.execute(
                """
                SELECT * FROM legal_info
                WHERE is_published = 1
                  AND (title LIKE ? OR summary LIKE ? OR content LIKE ?)
                ORDER BY created_at DESC, id DESC
                """,
                (pattern, pattern, pattern),
            ).fetchall()
        return [cls._row_to_article(row) for row in rows]

    @classmethod
    async def list_by_category(cls, db: Database, category: str) -> List[ArticleRead]:
        if not category or not category.strip():
            raise ValidationFailed("Category is required")
        with db.cursor() as cursor:
            rows = cursor.execute(
                "SELECT * FROM legal_info WHERE category = ? AND is_published = 1 "
                "ORDER BY created_at DESC, id DESC",
                (category.strip(),),
            ).fetchall()
        return [cls._row_to_article(row) for row in rows]

    @classmethod
    async def list_popular(cls, db: Database) -> List[ArticleRead]:
        """The most viewed published articles."""
        with db.cursor() as cursor:
            rows = cursor.execute(
                "SELECT * FROM legal_info WHERE is_published = 1 ORDER BY views DESC, id ASC LIMIT ?",
                (POPULAR_LIMIT,),
            ).fetchall()
        return [cls._row_to_article(row) for row in rows]

    @classmethod
    async def get_article(cls, db: Database, article_id: int) -> ArticleRead:
        """Return an article and count the view.

        The returned object already includes the view being counted.
        """
        with db.cursor() as cursor:
            cursor.execute("UPDATE legal_info SET views = views + 1 WHERE id = ?", (article_id,))
            if cursor.rowcount == 0:
                raise NotFoundError("Article not found")
            row = cursor.execute("SELECT * FROM legal_info WHERE id = ?", (article_id,)).fetchone()
        return cls._row_to_article(row)

    @classmethod
    async def list_related(cls, db: Database, article_id: int) -> List[ArticleRead]:
        """Up to three other published articles of the same category."""
        with db.cursor() as cursor:
            article = cursor.execute(
                "SELECT category FROM legal_info WHERE id = ?", (article_id,)
            ).fetchone()
            if not article:
                raise NotFoundError("Article not found")
            rows = cursor.execute(
                "SELECT * FROM legal_info WHERE category = ? AND id != ? AND is_published = 1 "
                "ORDER BY views DESC, id ASC LIMIT ?",
                (article["category"], article_id, RELATED_LIMIT),
            ).fetchall()
        return [cls._row_to_article(row) for row in rows]

    @classmethod
    async def create_article(
        cls, db: Database, current_user: Dict[str, Any], data: ArticleCreate
    ) -> ArticleRead:
        """Insert a new article authored by ``current_user``."""
        with db.cursor() as cursor:
            cursor.execute(
                """
                INSERT INTO legal_info (
                    title, category, summary, content, tags, read_time, author_id, is_published
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    data.title,
                    data.category,
                    data.summary,
                    data.content,
                    json.dumps(data.tags or []),
                    data.read_time,
                    current_user["id"],
                    1 if data.is_published else 0,
                ),
            )
            article_id = cursor.lastrowid
            row = cursor.execute("SELECT * FROM legal_info WHERE id = ?", (article_id,)).fetchone()
        logger.info("Created article %s in category %s", article_id, data.category)
        return cls._row_to_article(row)

    @classmethod
    async def update_article(cls, db: Database, article_id: int, data: ArticleUpdate) -> ArticleRead:
        """Update an existing article.

        Only fields provided in ``data`` are written.
        """
        updates = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
        if "tags" in updates:
            updates["tags"] = json.dumps(updates["tags"])
        if "is_published" in updates:
            updates["is_published"] = 1 if updates["is_published"] else 0
        with db.cursor() as cursor:
            row = cursor.execute("SELECT id FROM legal_info WHERE id = ?", (article_id,)).fetchone()
            if not row:
                raise NotFoundError("Article not found")
            if updates:
                fields = ", ".join(f"{key} = ?" for key in updates)
                cursor.execute(
                    f"UPDATE legal_info SET {fields}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (*updates.values(), article_id),
                )
            updated = cursor.execute("SELECT * FROM legal_info WHERE id = ?", (article_id,)).fetchone()
        logger.info("Updated article %s: %s", article_id, sorted(updates))
        return cls._row_to_article(updated)

    @classmethod
    async def delete_article(cls, db: Database, article_id: int) -> None:
        with db.cursor() as cursor:
            cursor.execute("DELETE FROM legal_info WHERE id = ?", (article_id,))
            if cursor.rowcount == 0:
                raise NotFoundError("Article not found")
        logger.info("Deleted article %s", article_id)

    @staticmethod
    def _row_to_article(row: sqlite3.Row) -> ArticleRead:
        """Convert a database row to an ``ArticleRead``, decoding the tags JSON."""
        tags: List[str] = []
        if row["tags"]:
            try:
                tags = json.loads(row["tags"]) or []
            except (TypeError, json.JSONDecodeError):
                tags = []
        return ArticleRead(
            id=row["id"],
            title=row["title"],
            category=row["category"],
            summary=row["summary"],
            content=row["content"],
            tags=tags,
            read_time=row["read_time"],
            author_id=row["author_id"],
            views=row["views"],
            is_published=bool(row["is_published"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
