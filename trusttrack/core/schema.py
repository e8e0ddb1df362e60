"""
Core records exchanged between the pipelines.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class FieldPair:
    """One key/value metadata entry attached to a stage."""
    key: str
    value: str


@dataclass
class MediaBlob:
    """Uploaded media content handed to the media resolver."""
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class SubmissionRequest:
    """Transient input of the submission pipeline."""
    product_id: str
    fields: List[FieldPair] = field(default_factory=list)
    comments: str = ""
    media: List[MediaBlob] = field(default_factory=list)


@dataclass
class TransactionRecord:
    """Result of a submission; the chain remains the source of truth."""
    event_id: str
    transaction_hash: str
    gas_used_estimate: int
    gas_price_used: int
    nonce: int
    media_ref: str = ""
    block_number: Optional[int] = None
    status: Optional[int] = None


@dataclass
class Event:
    """One recorded provenance stage for a product."""
    product_id: str
    event_id: str
    fields: Dict[str, str]
    comments: str
    media_ref: str
    timestamp: int  # milliseconds since epoch
    submitter: str

    def to_dict(self) -> Dict:
        return {
            "eventId": self.event_id,
            "fields": dict(self.fields),
            "comments": self.comments,
            "mediaIpfs": self.media_ref,
            "timestamp": self.timestamp,
            "submitter": self.submitter,
        }


@dataclass
class StageHistory:
    """Time-ordered events for one product plus the stages that could not be read."""
    product_id: str
    stages: List[Event] = field(default_factory=list)
    skipped: List = field(default_factory=list)  # PartialFetchError instances

    def to_dict(self) -> Dict:
        return {"stages": [stage.to_dict() for stage in self.stages]}
