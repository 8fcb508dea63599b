"""
HTTP boundary for the news feed.

Routes are thin: they forward to NewsService and let NewsFeedError
subclasses become structured ``{"error", "kind"}`` responses. Anything
unexpected is logged and answered with a generic 500 body.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import Any, Optional

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from . import __version__
from .errors import NewsFeedError, ValidationError
from .logging_utils import log_event
from .service import NewsService


logger = logging.getLogger("news_feed.api")


class UserBody(BaseModel):
    username: Optional[str] = None


class CommentBody(BaseModel):
    username: Optional[str] = None
    text: Optional[str] = None


class CredentialsBody(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


def create_app(service: NewsService) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log_event(logger, "News feed server starting", event="server_start", **service.stats())
        yield
        await service.aclose()
        log_event(logger, "News feed server stopped", event="server_stop")

    app = FastAPI(title="News Feed", version=__version__, lifespan=lifespan)
    app.state.service = service

    @app.exception_handler(NewsFeedError)
    async def news_feed_error_handler(request: Request, exc: NewsFeedError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        error = ValidationError(_describe_invalid_request(exc))
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error", "kind": "internal"})

    @app.get("/api/health")
    async def health() -> dict[str, Any]:
        return {"status": "ok", **service.stats()}

    @app.get("/api/news")
    async def list_news(
        category: str = Query(default="tech"),
        q: str = Query(default=""),
        page: int = Query(default=1),
        page_size: Optional[int] = Query(default=None, alias="pageSize"),
    ) -> dict[str, Any]:
        return await service.list_articles(category, q, page, page_size)

    @app.get("/api/trending")
    async def trending() -> dict[str, Any]:
        return await service.trending()

    @app.get("/api/categories")
    async def categories() -> dict[str, Any]:
        return service.categories()

    @app.get("/api/articles/{article_id}")
    async def get_article(article_id: str, username: Optional[str] = None) -> dict[str, Any]:
        return service.get_article(article_id, username)

    @app.post("/api/articles/{article_id}/like")
    async def toggle_like(article_id: str, body: UserBody) -> dict[str, Any]:
        return service.toggle_like(article_id, body.username)

    @app.get("/api/articles/{article_id}/comments")
    async def list_comments(article_id: str, username: Optional[str] = None) -> dict[str, Any]:
        return service.list_comments(article_id, username)

    @app.post("/api/articles/{article_id}/comments")
    async def add_comment(article_id: str, body: CommentBody) -> dict[str, Any]:
        return service.add_comment(article_id, body.username, body.text)

    @app.post("/api/articles/{article_id}/comments/{comment_id}/like")
    async def toggle_comment_like(article_id: str, comment_id: str, body: UserBody) -> dict[str, Any]:
        return service.toggle_comment_like(article_id, comment_id, body.username)

    @app.post("/api/register")
    async def register(body: CredentialsBody) -> dict[str, Any]:
        return service.register(body.username, body.password)

    @app.post("/api/login")
    async def login(body: CredentialsBody) -> dict[str, Any]:
        return service.login(body.username, body.password)

    return app


def _describe_invalid_request(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("query", "path"))
    message = first.get("msg") or "invalid value"
    return f"Invalid {location}: {message}" if location else f"Invalid request: {message}"
