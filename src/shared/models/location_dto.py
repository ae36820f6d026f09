from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class LocationDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    accuracy: Optional[float] = None
    heading: Optional[float] = None
    speed: Optional[float] = None

    def as_tuple(self) -> tuple[float, float]:
        return self.lat, self.lng
