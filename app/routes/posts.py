"""Post endpoints.

POST /v1/posts                        - create
GET  /v1/posts/{id}                   - read (optionally with related posts)
PUT  /v1/posts/{id}                   - full-replacement update
GET  /v1/posts/search-by-tag?tag=     - tag containment search (PostgreSQL)
GET  /v1/posts/search?q=              - full-text search (Elasticsearch)
GET  /v1/posts/{id}/activity          - activity log for a post

Routers are thin: call PostService for everything else.
"""

from fastapi import APIRouter, Depends, Path, Query, Request

from app.schemas import ActivityEntry, PostCreate, PostOut, PostUpdate, PostWithRelated, SearchHit
from app.services.posts import PostService

router = APIRouter()


def get_post_service(request: Request) -> PostService:
    """PostService wired at startup (see app.main.lifespan)."""
    return request.app.state.post_service


@router.post("", response_model=PostOut, status_code=201)
async def create_post(
    body: PostCreate,
    service: PostService = Depends(get_post_service),
) -> PostOut:
    return await service.create_post(body)


# Static paths are registered before /{post_id} so they are matched first.
@router.get("/search-by-tag", response_model=list[PostOut])
async def search_by_tag(
    tag: str = Query(min_length=1, description="Exact tag to match"),
    service: PostService = Depends(get_post_service),
) -> list[PostOut]:
    """Posts carrying `tag`, newest first."""
    return await service.search_by_tag(tag)


@router.get("/search", response_model=list[SearchHit])
async def search_full_text(
    q: str = Query(min_length=1, description="Free-text query over title and content"),
    service: PostService = Depends(get_post_service),
) -> list[SearchHit]:
    return await service.search_full_text(q)


@router.get("/{post_id}", response_model=PostOut | PostWithRelated)
async def get_post(
    post_id: int = Path(ge=1, description="Post ID"),
    include_related: bool = Query(default=False, description="Also return posts sharing a tag"),
    service: PostService = Depends(get_post_service),
) -> PostOut | PostWithRelated:
    """Get a post by id.

    With include_related=true the response is {"post": ..., "related": [...]};
    `related` is empty when the search index is unavailable.
    """
    if include_related:
        return await service.get_post_with_related(post_id)
    return await service.get_post(post_id)


@router.put("/{post_id}", response_model=PostOut)
async def update_post(
    body: PostUpdate,
    post_id: int = Path(ge=1, description="Post ID"),
    service: PostService = Depends(get_post_service),
) -> PostOut:
    return await service.update_post(post_id, body)


@router.get("/{post_id}/activity", response_model=list[ActivityEntry])
async def list_activity(
    post_id: int = Path(ge=1, description="Post ID"),
    service: PostService = Depends(get_post_service),
) -> list[ActivityEntry]:
    return await service.list_activity(post_id)
