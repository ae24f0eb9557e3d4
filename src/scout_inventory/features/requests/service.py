import logging
from typing import Any, Mapping, Optional, Union

from ...backends.base import BackendAdapter
from ...common.domains import RequestStatus
from ...common.schemas import parse_enum, parse_model
from ..auth.schemas import Identity
from ..auth.service import AccessControlGate
from .schemas import ItemRequest, ItemRequestCreate

logger = logging.getLogger(__name__)


class RequestRepository:
    """General item requests: anyone may submit one, admins triage them."""

    def __init__(self, backend: BackendAdapter, gate: AccessControlGate):
        self.backend = backend
        self.gate = gate

    async def list_requests(
        self, actor: Optional[Identity], status: Optional[Any] = None
    ) -> list[ItemRequest]:
        await self.gate.require_admin(actor, "view item requests")
        if status is not None:
            status = parse_enum(RequestStatus, status)
        return await self.backend.list_item_requests(status)

    async def create_request(
        self, fields: Union[ItemRequestCreate, Mapping[str, Any]]
    ) -> ItemRequest:
        """Submits a request from the public form. It always starts out pending."""
        request_in = parse_model(ItemRequestCreate, fields)
        item_request = await self.backend.create_item_request(request_in)
        logger.info(
            f"Request {item_request.id} for {item_request.quantity} x "
            f"'{item_request.item_requested}' received from {item_request.scout_group}."
        )
        return item_request

    async def update_status(
        self, actor: Optional[Identity], request_id: str, status: Any
    ) -> ItemRequest:
        await self.gate.require_admin(actor, "update item requests")
        status = parse_enum(RequestStatus, status)
        item_request = await self.backend.update_item_request_status(request_id, status)
        logger.info(f"Request {request_id} marked {status.value} by {actor.user_id}.")
        return item_request
