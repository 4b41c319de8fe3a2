from dataclasses import dataclass
from typing import Optional

ENTITY_TYPE = "City"

#one gazetteer row; name is never empty once loaded
@dataclass(frozen=True)
class Entity:
    id: str
    name: str
    type: str = ENTITY_TYPE
    province: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
