from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from land_auctions.seed.auction_sources import AUCTION_SOURCES, get_source
from land_auctions.tasks.runner import dispatch_discovery_run, get_run_status

router = APIRouter()


class CreateDiscoveryRunRequest(BaseModel):
    source_ids: list[str] | None = None
    urls: list[str] | None = None
    force: bool = False


@router.get("/sources")
async def list_sources():
    return [
        {
            "id": s.id,
            "display_name": s.display_name,
            "base_url": s.base_url,
            "seed_url": s.seed_url,
            "is_enabled": s.is_enabled,
        }
        for s in AUCTION_SOURCES
    ]


@router.post("/runs", status_code=202)
async def create_run(req: CreateDiscoveryRunRequest):
    unknown = [sid for sid in req.source_ids or [] if get_source(sid) is None]
    if unknown:
        raise HTTPException(status_code=404, detail=f"Unknown sources: {', '.join(unknown)}")

    run_id = dispatch_discovery_run(source_ids=req.source_ids, urls=req.urls, force=req.force)
    return {"id": run_id, "status": "pending", "message": "Discovery run dispatched"}


@router.get("/runs/{run_id}")
async def get_run(run_id: str):
    run = get_run_status(run_id)
    if run is None:
        raise HTTPException(status_code=404, detail="Run not found")
    return run
