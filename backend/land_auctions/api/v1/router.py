from fastapi import APIRouter

from land_auctions.api.v1 import auctions, discovery, fields

api_router = APIRouter()

api_router.include_router(auctions.router, prefix="/auctions", tags=["auctions"])
api_router.include_router(discovery.router, prefix="/discovery", tags=["discovery"])
api_router.include_router(fields.router, prefix="/fields", tags=["fields"])
