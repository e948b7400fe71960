"""Request/response models for chatter creation."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from coffey.core.timeutils import parse_timestamp, to_iso


class LocationHint(BaseModel):
    lat: float
    lng: float
    accuracy_m: Optional[float] = None


class LatLng(BaseModel):
    lat: float
    lng: float


class PlaceInput(BaseModel):
    """Either a place-provider id, or the full set of manual display fields."""

    name: Optional[str] = None
    formatted_address: Optional[str] = None
    short_address: Optional[str] = None
    location: Optional[LatLng] = None
    provider_ids: Optional[Dict[str, str]] = None

    @model_validator(mode="after")
    def check_reference(self) -> "PlaceInput":
        has_place_id = bool((self.provider_ids or {}).get("google_places"))
        has_manual = bool(self.name and self.formatted_address and self.short_address and self.location)
        if not (has_place_id or has_manual):
            raise ValueError(
                "Must provide either provider_ids.google_places OR all manual fields "
                "(name, formatted_address, short_address, location)"
            )
        return self

    @property
    def google_place_id(self) -> Optional[str]:
        return (self.provider_ids or {}).get("google_places")


class LinkInput(BaseModel):
    url: str
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    domain: Optional[str] = None

    @field_validator("url")
    @classmethod
    def check_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"not an http(s) URL: {value}")
        return value


class WatchedInput(BaseModel):
    media_type: Literal["movie", "tv"]
    tmdb_id: Optional[int] = None
    tmdb_title: Optional[str] = None


class CreateChatterRequest(BaseModel):
    kind: Literal["chatter"] = "chatter"
    content: Optional[str] = None
    comment: Optional[str] = None
    title: Optional[str] = None
    tags: Optional[List[str]] = None
    images: Optional[List[str]] = Field(default=None, description="Blob keys returned by the image upload endpoint")
    # One URL, a list of URLs, or a list of link objects
    links: Optional[Union[str, List[Union[str, LinkInput]]]] = None
    publish: Optional[bool] = None
    location_hint: Optional[LocationHint] = None
    place: Optional[PlaceInput] = None
    watched: Optional[WatchedInput] = None
    created_at: Optional[str] = Field(default=None, description="Backdate the record (ISO-8601)")

    @field_validator("links", mode="after")
    @classmethod
    def normalize_links(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, str):
            value = [value]
        return [LinkInput(url=item) if isinstance(item, str) else item for item in value]

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        parsed = parse_timestamp(value)
        if parsed is None:
            raise ValueError(f"not a valid timestamp: {value}")
        return to_iso(parsed)

    def link_dicts(self) -> List[Dict[str, Any]]:
        return [link.model_dump(exclude_none=True) for link in self.links or []]


class CreateChatterResponse(BaseModel):
    record: Dict[str, Any]
    object_key: Optional[str] = None
    is_duplicate: bool = False
