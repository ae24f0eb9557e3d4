"""Copies inventory items and item requests from the relational tables into
another backend, usually the document store.

Each phase reads every source row, converts it through the relational
mapping table and the canonical schemas, and writes it to the destination one
record at a time. A record that fails is logged and counted, and the phase
moves on; there is no rollback, so a partial migration is a normal outcome
that the report describes. Running a phase twice writes the records twice.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from ...backends import mapping
from ...backends.base import BackendAdapter
from ...backends.relational import RelationalBackend
from ...common.schemas import parse_model
from ...core import errors
from ..requests.schemas import ItemRequest

logger = logging.getLogger(__name__)

PHASES = ("inventory", "requests")


@dataclass
class PhaseReport:
    phase: str
    total: int = 0
    migrated: int = 0
    failures: list[str] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)

    def summary(self) -> str:
        return f"{self.migrated}/{self.total}"


class MigrationUtility:
    def __init__(self, source: RelationalBackend, destination: BackendAdapter):
        self.source = source
        self.destination = destination

    async def migrate_inventory(self) -> PhaseReport:
        rows = await self.source.fetch_inventory_rows()
        report = PhaseReport(phase="inventory", total=len(rows))
        logger.info(f"Migrating {report.total} inventory items to the {self.destination.name} backend...")
        for row in rows:
            await self._migrate_row(report, row, self._write_item)
        self._log_summary(report)
        return report

    async def migrate_requests(self) -> PhaseReport:
        rows = await self.source.fetch_item_request_rows()
        report = PhaseReport(phase="requests", total=len(rows))
        logger.info(f"Migrating {report.total} item requests to the {self.destination.name} backend...")
        for row in rows:
            await self._migrate_row(report, row, self._write_request)
        self._log_summary(report)
        return report

    async def run(self) -> list[PhaseReport]:
        return [await self.migrate_inventory(), await self.migrate_requests()]

    async def _write_item(self, row: dict[str, Any]) -> str:
        # Totals are recomputed by the destination rather than copied.
        item = await self.destination.create_inventory_item(
            mapping.INVENTORY_COLUMNS.from_stored(row)
        )
        return item.id

    async def _write_request(self, row: dict[str, Any]) -> str:
        source_request = parse_model(ItemRequest, mapping.REQUEST_COLUMNS.from_stored(row))
        item_request = await self.destination.import_item_request(source_request)
        return item_request.id

    async def _migrate_row(self, report: PhaseReport, row: dict[str, Any], write) -> None:
        source_id = row.get("public_id") or row.get("id")
        try:
            new_id = await write(row)
        except errors.InventoryError as e:
            report.failures.append(f"{source_id}: {e.message}")
            logger.warning(f"Could not migrate {report.phase} record {source_id}: {e.message}")
            return
        report.migrated += 1
        logger.debug(f"Migrated {report.phase} record {source_id} -> {new_id}")

    def _log_summary(self, report: PhaseReport) -> None:
        message = f"{report.phase.capitalize()} migration finished: {report.summary()} migrated"
        if report.failed:
            logger.warning(f"{message}, {report.failed} failed.")
        else:
            logger.info(f"{message}.")
