from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from .reconcile_record import ENTITY_TYPE

#one named query of a batch, OpenRefine extras (type, properties) are ignored
class ReconcileQuery(BaseModel):
    model_config = ConfigDict(extra="ignore")

    query: str = ""
    limit: Optional[int] = Field(default=None, ge=0)

    #a null query is treated like a missing one
    @field_validator("query", mode="before")
    @classmethod
    def null_query_is_empty(cls, value):
        return "" if value is None else value

class EntityType(BaseModel):
    id: str
    name: str

def entity_types(type_name: str) -> List[EntityType]:
    return [EntityType(id=type_name.lower(), name=type_name)]

DEFAULT_TYPES = entity_types(ENTITY_TYPE)

class Candidate(BaseModel):
    id: str
    name: str
    score: int = Field(ge=0, le=100)
    match: bool
    type: List[EntityType]

class ReconcileResult(BaseModel):
    result: List[Candidate]

class ServiceView(BaseModel):
    url: str

class ServiceManifest(BaseModel):
    name: str
    identifierSpace: str
    schemaSpace: str
    defaultTypes: List[EntityType]
    view: ServiceView

class EntityView(BaseModel):
    id: str
    name: str
    type: List[EntityType]
    province: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None

class UploadResponse(BaseModel):
    success: bool
    message: str
    recordCount: int
    fields: List[str]

class StatusResponse(BaseModel):
    status: str
    entities: int
    service: str
    version: int
