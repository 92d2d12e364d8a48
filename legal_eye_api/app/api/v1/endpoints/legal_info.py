"""
API endpoints for legal-information articles.

Reading is public; creating, updating and deleting articles is limited
to administrators.  Fixed paths (``/search``, ``/category``,
``/popular``) are declared before ``/{article_id}``.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, status

from legal_eye_api.app.core.db import Database, get_db
from legal_eye_api.app.core.responses import success_response
from legal_eye_api.app.core.security import require_roles
from legal_eye_api.app.schemas.legal_info import ArticleCreate, ArticleUpdate
from legal_eye_api.app.services.legal_info_service import LegalInfoService

router = APIRouter()


@router.get("", summary="List published articles")
async def list_articles(db: Database = Depends(get_db)):
    articles = await LegalInfoService.list_articles(db)
    return success_response({"articles": articles}, count=len(articles))


@router.get("/search", summary="Search articles")
async def search_articles(q: str = Query(..., description="Text to look for"), db: Database = Depends(get_db)):
    articles = await LegalInfoService.search_articles(db, q)
    return success_response({"articles": articles}, count=len(articles))


@router.get("/category", summary="Articles of one category")
async def articles_by_category(category: str = Query(...), db: Database = Depends(get_db)):
    articles = await LegalInfoService.list_by_category(db, category)
    return success_response({"articles": articles}, count=len(articles))


@router.get("/popular", summary="Most viewed articles")
async def popular_articles(db: Database = Depends(get_db)):
    articles = await LegalInfoService.list_popular(db)
    return success_response(articles, count=len(articles))


@router.get("/{article_id}", summary="Read an article")
async def get_article(article_id: int, db: Database = Depends(get_db)):
    """Returns the article and counts the view."""
    return success_response(await LegalInfoService.get_article(db, article_id))


@router.get("/{article_id}/related", summary="Articles of the same category")
async def related_articles(article_id: int, db: Database = Depends(get_db)):
    articles = await LegalInfoService.list_related(db, article_id)
    return success_response(articles, count=len(articles))


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create an article")
async def create_article(
    data: ArticleCreate,
    current_user: Dict[str, Any] = Depends(require_roles("admin")),
    db: Database = Depends(get_db),
):
    article = await LegalInfoService.create_article(db, current_user, data)
    return success_response(article, "Article created successfully", status.HTTP_201_CREATED)


@router.put("/{article_id}", summary="Update an article")
async def update_article(
    article_id: int,
    data: ArticleUpdate,
    current_user: Dict[str, Any] = Depends(require_roles("admin")),
    db: Database = Depends(get_db),
):
    article = await LegalInfoService.update_article(db, article_id, data)
    return success_response(article, "Article updated successfully")


@router.delete("/{article_id}", summary="Delete an article")
async def delete_article(
    article_id: int,
    current_user: Dict[str, Any] = Depends(require_roles("admin")),
    db: Database = Depends(get_db),
):
    await LegalInfoService.delete_article(db, article_id)
    return success_response(message="Article deleted successfully")
