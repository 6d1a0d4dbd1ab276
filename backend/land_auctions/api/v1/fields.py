from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query

from land_auctions.api.deps import get_field_boundary_service
from land_auctions.services.field_boundary_service import FieldBoundaryService

router = APIRouter()


@router.get("/search")
async def search_fields(
    min_lat: float = Query(..., ge=-90, le=90),
    max_lat: float = Query(..., ge=-90, le=90),
    min_lon: float = Query(..., ge=-180, le=180),
    max_lon: float = Query(..., ge=-180, le=180),
    limit: int = Query(50, ge=1, le=500),
    service: FieldBoundaryService = Depends(get_field_boundary_service),
):
    if min_lat > max_lat or min_lon > max_lon:
        raise HTTPException(status_code=400, detail="Invalid bounding box")
    result = await service.search_fields(min_lat, max_lat, min_lon, max_lon, limit=limit)
    return asdict(result)


@router.get("/near")
async def fields_near_point(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    radius_meters: float = Query(100, gt=0, le=5000),
    service: FieldBoundaryService = Depends(get_field_boundary_service),
):
    result = await service.find_fields_near_point(lat, lon, radius_meters)
    return asdict(result)


@router.get("/{field_id}")
async def get_field(field_id: str, service: FieldBoundaryService = Depends(get_field_boundary_service)):
    boundary = await service.get_field_by_id(field_id)
    if boundary is None:
        raise HTTPException(status_code=404, detail="Field not found")
    return asdict(boundary)
