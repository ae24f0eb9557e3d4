"""Notifications sent when stock is requested for withdrawal."""

import abc
import logging
from dataclasses import dataclass

from ..auth.schemas import Identity
from ..inventory.schemas import InventoryItem
from .schemas import Withdrawal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    to: str
    subject: str
    body: str


class Notifier(abc.ABC):
    @abc.abstractmethod
    async def send(self, notification: Notification) -> None: ...


class LoggingNotifier(Notifier):
    """Writes the message to the log instead of delivering it."""

    async def send(self, notification: Notification) -> None:
        logger.info(
            f"Notification to {notification.to}: {notification.subject}\n{notification.body}"
        )


def build_withdrawal_notification(
    to: str, requester: Identity, item: InventoryItem, withdrawal: Withdrawal
) -> Notification:
    lines = [
        "A new material withdrawal was requested.",
        "",
        f"Requested by: {requester.email}",
        f"Item: {item.description}",
        f"Kind: {item.kind.value}",
        f"Level: {item.level.value}",
        f"Branch: {item.branch.value}",
        f"Requested quantity: {withdrawal.quantity}",
        f"Available quantity: {item.quantity}",
        f"Unit value: {item.unit_value:.2f}",
        f"Total value: {item.total_value:.2f}",
    ]
    if withdrawal.notes:
        lines.append(f"Notes: {withdrawal.notes}")
    return Notification(
        to=to,
        subject=f"New withdrawal request - {item.description}",
        body="\n".join(lines),
    )
