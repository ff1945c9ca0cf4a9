from fastapi import APIRouter

from . import auth, health, users, novels, chapters, interactions, comments, changelogs, storage, contact, rpc

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(novels.router, prefix="/novels", tags=["novels"])
api_router.include_router(chapters.router, prefix="", tags=["chapters"])
api_router.include_router(interactions.router, prefix="", tags=["interactions"])
api_router.include_router(comments.router, prefix="", tags=["comments"])
api_router.include_router(changelogs.router, prefix="/changelogs", tags=["changelogs"])
api_router.include_router(storage.router, prefix="/storage", tags=["storage"])
api_router.include_router(contact.router, prefix="/contact", tags=["contact"])
api_router.include_router(rpc.router, prefix="/rpc", tags=["rpc"])
