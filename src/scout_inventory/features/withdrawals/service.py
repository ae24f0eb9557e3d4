import logging
from typing import Any, Mapping, Optional, Union

from ...backends.base import BackendAdapter
from ...common.domains import WithdrawalStatus
from ...common.schemas import parse_model
from ...core import config, errors
from ..auth.schemas import Identity
from ..auth.service import AccessControlGate
from .notifications import LoggingNotifier, Notifier, build_withdrawal_notification
from .schemas import Withdrawal, WithdrawalCreate, WithdrawalDecision

logger = logging.getLogger(__name__)


class WithdrawalWorkflow:
    """Request, list and decide stock withdrawals.

    Any signed-in user may ask to take items out of stock; an admin approves
    or rejects the request. Approval is what actually deducts the stock.
    """

    def __init__(
        self,
        backend: BackendAdapter,
        gate: AccessControlGate,
        notifier: Optional[Notifier] = None,
        notify_to: Optional[str] = None,
    ):
        self.backend = backend
        self.gate = gate
        self.notifier = notifier or LoggingNotifier()
        self.notify_to = notify_to or config.WITHDRAWAL_NOTIFY_EMAIL

    async def request_withdrawal(
        self, actor: Optional[Identity], fields: Union[WithdrawalCreate, Mapping[str, Any]]
    ) -> Withdrawal:
        """
        Records a withdrawal request and notifies the stock keepers.

        Raises:
            errors.NotFoundError: if the item does not exist.
            errors.ValidationError: if more units are requested than are in stock.
        """
        identity = self.gate.require_authenticated(actor, "request a withdrawal")
        withdrawal_in = parse_model(WithdrawalCreate, fields)
        item = await self.backend.get_inventory_item(withdrawal_in.item_id)
        if withdrawal_in.quantity > item.quantity:
            raise errors.ValidationError(
                f"Requested quantity ({withdrawal_in.quantity}) exceeds the available stock ({item.quantity})."
            )

        withdrawal = await self.backend.create_withdrawal(identity.user_id, withdrawal_in)
        logger.info(
            f"Withdrawal {withdrawal.id} of {withdrawal.quantity} x '{item.description}' "
            f"requested by {identity.user_id}."
        )

        notification = build_withdrawal_notification(self.notify_to, identity, item, withdrawal)
        try:
            await self.notifier.send(notification)
        except Exception as e:
            # The withdrawal stands even when nobody could be told about it.
            logger.error(f"Could not send notification for withdrawal {withdrawal.id}: {e}", exc_info=True)
        return withdrawal

    async def list_withdrawals(self, actor: Optional[Identity]) -> list[Withdrawal]:
        identity = self.gate.require_authenticated(actor, "view withdrawals")
        if await self.gate.is_admin(identity):
            return await self.backend.list_withdrawals()
        return await self.backend.list_withdrawals(user_id=identity.user_id)

    async def decide_withdrawal(
        self, actor: Optional[Identity], withdrawal_id: str, status: Any
    ) -> Withdrawal:
        """
        Approves or rejects a pending withdrawal.

        Approving deducts the quantity from the item's stock, which also
        recomputes the item's total value. The withdrawal leaves `requested`
        before the stock moves, so a retried approval can never deduct twice;
        if the deduction fails the withdrawal is put back to `requested`.
        """
        identity = await self.gate.require_admin(actor, "decide withdrawals")
        decision = parse_model(WithdrawalDecision, {"status": status})
        withdrawal = await self.backend.get_withdrawal(withdrawal_id)
        if withdrawal.status != WithdrawalStatus.REQUESTED:
            raise errors.ValidationError(
                f"Withdrawal {withdrawal_id} was already {withdrawal.status.value}."
            )

        if decision.status == WithdrawalStatus.APPROVED:
            item = await self.backend.get_inventory_item(withdrawal.item_id)
            if withdrawal.quantity > item.quantity:
                raise errors.ValidationError(
                    f"Only {item.quantity} units of '{item.description}' are left; "
                    f"cannot approve {withdrawal.quantity}."
                )
            withdrawal = await self.backend.update_withdrawal_status(withdrawal_id, decision.status)
            try:
                await self.backend.update_inventory_item(
                    item.id, {"quantity": item.quantity - withdrawal.quantity}
                )
            except errors.InventoryError as e:
                logger.error(f"Stock deduction for withdrawal {withdrawal_id} failed: {e.message}")
                await self.backend.update_withdrawal_status(withdrawal_id, WithdrawalStatus.REQUESTED)
                raise
        else:
            withdrawal = await self.backend.update_withdrawal_status(withdrawal_id, decision.status)
        logger.info(f"Withdrawal {withdrawal_id} {decision.status.value} by {identity.user_id}.")
        return withdrawal
