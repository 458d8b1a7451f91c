from fastapi import APIRouter

from localboard_api.api.routes import admin, health, listings, moderation, neighborhoods, public, support

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(listings.router, prefix="/listings", tags=["listings"])
api_router.include_router(public.router, prefix="/public/listings", tags=["public"])
api_router.include_router(neighborhoods.router, tags=["places"])
api_router.include_router(moderation.router, prefix="/moderation", tags=["moderation"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
api_router.include_router(support.router, prefix="/support", tags=["support"])
