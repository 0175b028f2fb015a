from fastapi import APIRouter
from boards.api.endpoints import events, recommendations, users

api_router = APIRouter()
api_router.include_router(recommendations.router, prefix="/reco", tags=["recommendations"])
api_router.include_router(events.router, prefix="/events", tags=["events"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
