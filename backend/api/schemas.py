from __future__ import annotations

from pydantic import BaseModel, Field


class CenterOut(BaseModel):
    latitude: float
    longitude: float


class ClusterOut(BaseModel):
    center: CenterOut
    count: int = Field(ge=1)


class TileOut(BaseModel):
    quadKey: str
    x: int
    y: int
    zoom: int
    sw: CenterOut
    ne: CenterOut
    center: CenterOut


class LocationOut(BaseModel):
    id: int
    name: str
    latitude: float
    longitude: float
    quadKey: str


class LocationPageOut(BaseModel):
    items: list[LocationOut]
    page: int
    pageSize: int
    total: int
    sortBy: str
    order: str
    filter: str
    hasPrev: bool
    hasNext: bool
    # 1-based, inclusive; 0 when the page is empty.
    from_: int = Field(alias="from")
    to: int

    model_config = {"populate_by_name": True}


class UpdateOut(BaseModel):
    updated: int
    message: str
