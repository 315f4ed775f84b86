"""API routes."""

from fastapi import APIRouter

from app.routes import posts

api_router = APIRouter()

# Post endpoints (CRUD + search)
api_router.include_router(posts.router, prefix="/v1/posts", tags=["posts"])
