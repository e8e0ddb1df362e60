"""
Record reconstruction pipeline - rebuilds a product's stage history from
contract state.

Only listing the stage ids is fatal. A stage whose data or metadata cannot
be read is logged and left out; the remaining stages are still returned.
"""

from typing import Any, List, Optional

from . import codec
from .errors import PartialFetchError, ReadError
from .schema import Event, StageHistory
from ..chain.client import (
    ChainClient,
    build_get_stage_data_call,
    build_get_stage_ids_call,
    build_get_stage_meta_call,
)
from ..util.logging import logger


def parse_stage_meta(meta: Any) -> tuple:
    """Validate a getStageMeta result: (comments, mediaIpfs, timestamp, submitter)."""
    if not isinstance(meta, (list, tuple)) or len(meta) != 4:
        raise ReadError("Malformed stage metadata", details=f"unexpected metadata shape: {meta!r}")

    comments, media_ref, timestamp, submitter = meta
    try:
        timestamp = int(timestamp)
    except (TypeError, ValueError) as e:
        raise ReadError("Malformed stage metadata", details=f"bad timestamp: {timestamp!r}") from e
    if timestamp < 0:
        raise ReadError("Malformed stage metadata", details=f"negative timestamp: {timestamp}")

    return comments or "", media_ref or "", timestamp, str(submitter)


class ReconstructionPipeline:
    """Read-only; safe to call from many threads at once."""

    def __init__(self, client: ChainClient):
        self.client = client

    def list_stage_ids(self, product_id: str) -> List[str]:
        ids = self.client.call(build_get_stage_ids_call(product_id))
        if not isinstance(ids, (list, tuple)):
            raise ReadError("Malformed stage id list", details=f"unexpected result: {ids!r}")
        return list(ids)

    def fetch_stage(self, product_id: str, event_id: str) -> Event:
        data = self.client.call(build_get_stage_data_call(product_id, event_id))
        meta = self.client.call(build_get_stage_meta_call(product_id, event_id))

        if not isinstance(data, (list, tuple)):
            raise ReadError("Malformed stage data", details=f"unexpected result: {data!r}")
        comments, media_ref, timestamp, submitter = parse_stage_meta(meta)

        return Event(
            product_id=product_id,
            event_id=event_id,
            fields=codec.decode(data),
            comments=comments,
            media_ref=media_ref,
            timestamp=timestamp * 1000,
            submitter=submitter
        )

    def get_history(self, product_id: str) -> StageHistory:
        logger.log_operation("history", "requested", {"product_id": product_id})
        stage_ids = self.list_stage_ids(product_id)

        history = StageHistory(product_id=product_id)
        if not stage_ids:
            logger.log_history(product_id, 0, 0)
            return history

        stages: List[Event] = []
        for event_id in stage_ids:
            stage = self._fetch_or_skip(product_id, event_id, history.skipped)
            if stage is not None:
                stages.append(stage)

        # sorted() is stable: equal timestamps keep listing order
        history.stages = sorted(stages, key=lambda stage: stage.timestamp)
        logger.log_history(product_id, len(history.stages), len(history.skipped))
        return history

    def _fetch_or_skip(self, product_id: str, event_id: str,
                       skipped: List[PartialFetchError]) -> Optional[Event]:
        try:
            return self.fetch_stage(product_id, event_id)
        except Exception as e:
            failure = PartialFetchError(event_id, e)
            skipped.append(failure)
            logger.log_stage_skipped(product_id, event_id, failure.details)
            return None
