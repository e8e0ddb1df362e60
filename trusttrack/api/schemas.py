"""
Request and response models for the relay HTTP API.
Field names follow the wire format consumed by existing clients (camelCase).
"""

from pydantic import BaseModel, field_validator
from typing import Dict, List


class SubmitStageResponse(BaseModel):
    success: bool = True
    transactionHash: str
    eventId: str
    message: str = "Stage data successfully recorded on blockchain"


class StageResponse(BaseModel):
    eventId: str
    fields: Dict[str, str]
    comments: str
    mediaIpfs: str
    timestamp: int
    submitter: str

    @field_validator('timestamp')
    @classmethod
    def timestamp_must_be_non_negative(cls, v):
        if v < 0:
            raise ValueError('timestamp must be >= 0')
        return v


class StagesResponse(BaseModel):
    stages: List[StageResponse]


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    blockchain: bool
    account: str


class ErrorResponse(BaseModel):
    error: str
    category: str
    details: str


class RootResponse(BaseModel):
    message: str
    version: str
    endpoints: List[str]
