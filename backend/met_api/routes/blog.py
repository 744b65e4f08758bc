"""
MET API — Blog Routes (/api/blog)
===================================

What:
    GET  /api/blog?page&pagination   public; posted posts only, newest first
    GET  /api/blog/post/{slug}       public; one posted post by slug
    GET  /api/blog/all               auth; drafts included
    POST /api/blog/addPost           auth; {post} → {post}
    POST /api/blog/updatePost        auth; {post} → {post: previous}
    POST /api/blog/deletePost        auth; {postId} → {post: removed}

Slugs are unique; reusing one is a 400. The author of a new post is the
caller. Updating records the caller as updateAuthorId.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from met_api.exceptions import NotFoundError
from met_api.middleware.auth import AuthModel
from met_api.models import BlogPost, BlogStatus
from met_api.repositories import PageQuery
from met_api.routes.common import (
    body_string,
    common_error_handler,
    current_auth,
    json_body,
    page_and_pagination,
    require_auth,
)
from met_api.routes.crud import Resource, entity_from_body
from met_api.storage import Repositories, get_repositories

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/blog", tags=["Blog"])

POSTS = Resource(BlogPost, lambda r: r.blog_posts)


async def _page_response(repos: Repositories, query: PageQuery) -> Dict[str, Any]:
    posts = await repos.blog_posts.get_page(query)
    total = await repos.blog_posts.count(query)
    return {
        "posts": [p.to_json() for p in posts],
        "morePages": total > query.end,
    }


@router.get("", summary="Published posts, newest first")
async def get_posts(
    request: Request,
    repos: Repositories = Depends(get_repositories),
) -> Dict[str, Any]:
    try:
        page, pagination = page_and_pagination(request)
        query = PageQuery(
            page=page,
            pagination=pagination,
            filters={"status": BlogStatus.POSTED.value},
        )
        return await _page_response(repos, query)
    except Exception as e:
        raise common_error_handler(e) from e


@router.get("/all", summary="All posts including drafts")
async def get_all_posts(
    request: Request,
    auth: AuthModel = Depends(require_auth),
    repos: Repositories = Depends(get_repositories),
) -> Dict[str, Any]:
    try:
        page, pagination = page_and_pagination(request)
        return await _page_response(repos, PageQuery(page=page, pagination=pagination))
    except Exception as e:
        raise common_error_handler(e) from e


@router.get("/post/{slug}", summary="One post by slug")
async def get_post_by_slug(
    slug: str,
    request: Request,
    repos: Repositories = Depends(get_repositories),
) -> Dict[str, Any]:
    try:
        filters: Dict[str, Any] = {"slug": slug}
        # Drafts stay hidden from anonymous readers
        auth = current_auth(request)
        if auth is None or not auth.authorized:
            filters["status"] = BlogStatus.POSTED.value

        posts = await repos.blog_posts.get_page(
            PageQuery(pagination=1, filters=filters)
        )
        if not posts:
            raise NotFoundError("post", slug)
        return {"post": posts[0].to_json()}
    except Exception as e:
        raise common_error_handler(e) from e


@router.post("/addPost", summary="Add a post")
async def add_post(
    request: Request,
    auth: AuthModel = Depends(require_auth),
    repos: Repositories = Depends(get_repositories),
) -> Dict[str, Any]:
    try:
        body = await json_body(request)
        raw = body.get("post")
        if isinstance(raw, dict):
            raw = {
                "authorId": auth.user_id,
                "dateAdded": datetime.now(timezone.utc).isoformat(),
                **raw,
            }
        post = entity_from_body(POSTS, {"post": raw}, auth, new=True)
        added = await repos.blog_posts.add(post)
        logger.info("Post %s added by %s", added.slug, auth.user_id)
        return {"post": added.to_json()}
    except Exception as e:
        raise common_error_handler(e) from e


@router.post("/updatePost", summary="Replace a post; returns the previous value")
async def update_post(
    request: Request,
    auth: AuthModel = Depends(require_auth),
    repos: Repositories = Depends(get_repositories),
) -> Dict[str, Any]:
    try:
        post = entity_from_body(POSTS, await json_body(request), auth, new=False)
        post = post.copy_with(
            update_author_id=auth.user_id,
            date_updated=datetime.now(timezone.utc),
        )
        previous = await repos.blog_posts.update(post)
        return {"post": previous.to_json()}
    except Exception as e:
        raise common_error_handler(e) from e


@router.post("/deletePost", summary="Delete a post; returns the removed value")
async def delete_post(
    request: Request,
    auth: AuthModel = Depends(require_auth),
    repos: Repositories = Depends(get_repositories),
) -> Dict[str, Any]:
    try:
        post_id = body_string(await json_body(request), "postId")
        removed = await repos.blog_posts.delete(post_id)
        logger.info("Post %s deleted by %s", removed.slug, auth.user_id)
        return {"post": removed.to_json()}
    except Exception as e:
        raise common_error_handler(e, not_found_status=500) from e
