"""Property lifecycle coordinator: Sell and Reopen.

Both transitions touch several collections (the project's property table,
``Clients``, ``Balance``, ``Documents``) that share no transaction. Each is
run as a :class:`~estate_ledger.saga.Saga` whose step order and
critical/best-effort split decide what a partial failure leaves behind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Mapping

from estate_ledger.events import PROPERTY_REOPENED, PROPERTY_SOLD, EventPublisher
from estate_ledger.exceptions import (
    InvalidTransitionError,
    MissingIdentityError,
    PersistenceError,
    RecordNotFoundError,
)
from estate_ledger.models.base import BALANCE, CLIENTS, DOCUMENTS, Row, UnitKey
from estate_ledger.models.enums import PropertyStatus
from estate_ledger.models.ledger import (
    AMOUNT,
    MONTHS_PAID_COUNT,
    MONTHS_PAID_LABEL,
    NAME,
    REMAINING_BALANCE,
)
from estate_ledger.models.property import ProjectSchema, detect_schema, get_schema
from estate_ledger.saga import Saga, SagaOutcome, SagaStep, StepOutcome, StepStatus
from estate_ledger.store.base import RecordStore

logger = logging.getLogger(__name__)

# Values written to a unit's Balance row when a reopen releases it
CLEARED_BALANCE: Row = {
    NAME: "",
    REMAINING_BALANCE: None,
    AMOUNT: None,
    MONTHS_PAID_LABEL: "",
    MONTHS_PAID_COUNT: None,
}


@dataclass
class TransitionResult:
    """Result of a Sell or Reopen that got through its critical steps."""

    property_id: UnitKey
    status: PropertyStatus
    buyer_name: str | None
    property_row: Row
    outcome: SagaOutcome
    extra_warnings: list[str] = field(default_factory=list)

    @property
    def warnings(self) -> list[str]:
        """Best-effort steps that failed or were skipped."""
        return self.outcome.warnings + self.extra_warnings

    @property
    def steps(self) -> list[StepOutcome]:
        return self.outcome.steps

    @property
    def fully_applied(self) -> bool:
        return not self.warnings


class PropertyLifecycleCoordinator:
    """Drive units between Available and Sold.

    Parameters
    ----------
    store : RecordStore
        Record store client.
    publisher : EventPublisher | None
        Receives ``property.sold`` / ``property.reopened`` after success.
    today : Callable[[], date]
        Clock for the default reservation date.
    """

    def __init__(
        self,
        store: RecordStore,
        publisher: EventPublisher | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.store = store
        self.publisher = publisher or EventPublisher()
        self.today = today

    def _resolve_schema(self, row: Mapping[str, Any], project: str | None) -> ProjectSchema:
        if project is not None:
            return get_schema(project)
        return detect_schema(row)

    def _property_filter(self, schema: ProjectSchema, property_row: Mapping[str, Any]) -> Row:
        # Rows read from the store carry their id; hand-built ones fall back to Block/Lot
        if property_row.get("id") is not None:
            return {"id": property_row["id"]}
        return schema.unit_key(property_row).property_filter()

    def _write_property(self, schema: ProjectSchema, criteria: Row, values: Row) -> Row:
        updated = self.store.update(schema.project, criteria, values)
        if not updated:
            raise RecordNotFoundError(f"No {schema.project} row matches {criteria}")
        return updated[0]

    # -- Sell -------------------------------------------------------------

    def sell(
        self,
        property_row: Mapping[str, Any],
        sale_details: Mapping[str, Any] | None = None,
        project: str | None = None,
    ) -> TransitionResult:
        """Mark a unit Sold and open its buyer's ledger.

        Steps, in order: write the property row (critical); make sure the
        buyer has a Client row (best-effort); upsert the unit's Balance row
        with a fresh ledger (best-effort). The last two are skipped when the
        sale carries no buyer name.

        Parameters
        ----------
        property_row : Mapping[str, Any]
            The unit as currently stored.
        sale_details : Mapping[str, Any] | None
            Columns entered for the sale; they override ``property_row``.
        project : str | None
            Project table; inferred from the row's columns when omitted.

        Returns
        -------
        TransitionResult
            The unit's identity, the stored row, and any warnings.

        Raises
        ------
        ValidationError
            Foreign columns, blank Block/Lot, or a unit already sold to
            someone else. Nothing was written.
        PersistenceError
            The property write failed. Nothing was written.
        """
        sale_details = dict(sale_details or {})
        schema = self._resolve_schema({**property_row, **sale_details}, project)
        row = schema.build_sale_row(property_row, sale_details, today=self.today())

        buyer = schema.buyer_name(row)
        if schema.status(property_row) is PropertyStatus.SOLD:
            current_buyer = schema.buyer_name(property_row)
            if current_buyer != buyer:
                raise InvalidTransitionError(
                    f"{schema.unit_key(property_row)} is already sold to {current_buyer!r}"
                )
            logger.info("%s already sold to %r; re-running sale", schema.unit_key(row), buyer)

        key = schema.unit_key(row)
        criteria = self._property_filter(schema, property_row)
        no_buyer = (lambda: None) if buyer else (lambda: "no buyer name on the sale")

        saga = Saga(
            "sell",
            [
                SagaStep("write_property", lambda: self._write_property(schema, criteria, row)),
                SagaStep(
                    "ensure_client",
                    lambda: self._ensure_client(buyer),
                    critical=False,
                    skip_when=no_buyer,
                ),
                SagaStep(
                    "upsert_balance",
                    lambda: self._upsert_balance(schema, key, buyer, row),
                    critical=False,
                    skip_when=no_buyer,
                ),
            ],
            unit=str(key),
        )
        outcome = saga.run()

        result = TransitionResult(
            property_id=key,
            status=PropertyStatus.SOLD,
            buyer_name=buyer,
            property_row=outcome.results["write_property"],
            outcome=outcome,
        )
        self.publisher.publish(
            PROPERTY_SOLD,
            key,
            {
                "buyer": buyer,
                "contract_value": schema.contract_value(row),
                "first_amortization": schema.first_amortization(row),
            },
            warnings=result.warnings,
        )
        return result

    def _ensure_client(self, buyer: str) -> Row | None:
        try:
            existing = self.store.list(CLIENTS, {NAME: buyer})
        except PersistenceError as exc:
            logger.warning("Client lookup for %r failed, inserting anyway: %s", buyer, exc)
            existing = []
        if existing:
            logger.debug("Client %r already exists, skipping insert", buyer)
            return existing[0]
        return self.store.insert(CLIENTS, {NAME: buyer})

    def _upsert_balance(self, schema: ProjectSchema, key: UnitKey, buyer: str, row: Row) -> Row:
        values: Row = {
            NAME: buyer,
            REMAINING_BALANCE: schema.contract_value(row),
            AMOUNT: schema.first_amortization(row),
            MONTHS_PAID_LABEL: "0",
            MONTHS_PAID_COUNT: 0,
        }
        if self.store.get(BALANCE, key.balance_filter()) is not None:
            return self.store.update(BALANCE, key.balance_filter(), values)[0]
        return self.store.insert(BALANCE, {**values, **key.balance_filter()})

    # -- Reopen -----------------------------------------------------------

    def reopen(self, property_row: Mapping[str, Any], project: str | None = None) -> TransitionResult:
        """Return a sold unit to inventory and unwind its buyer.

        Steps, in order: delete the buyer's Client rows (best-effort);
        delete the buyer's Documents rows (best-effort); clear the unit's
        Balance row while keeping its identity (best-effort); write the
        property row as Available with buyer fields blanked (critical).

        Client and Documents rows are matched by name across the whole
        system, so a homonymous buyer of another unit loses them too.

        Raises
        ------
        InvalidTransitionError
            The unit is not Sold.
        MissingIdentityError
            The unit has no buyer name to unwind.
        PersistenceError
            The property write failed.
        """
        schema = self._resolve_schema(property_row, project)
        key = schema.unit_key(property_row)

        buyer = schema.buyer_name(property_row)
        if buyer is None:
            raise MissingIdentityError(f"{key} has no buyer name; cannot reopen safely")
        if schema.status(property_row) is not PropertyStatus.SOLD:
            raise InvalidTransitionError(f"{key} is not sold")

        criteria = self._property_filter(schema, property_row)

        saga = Saga(
            "reopen",
            [
                SagaStep("delete_clients", lambda: self.store.delete(CLIENTS, {NAME: buyer}), critical=False),
                SagaStep("delete_documents", lambda: self.store.delete(DOCUMENTS, {NAME: buyer}), critical=False),
                SagaStep(
                    "clear_balance",
                    lambda: self.store.update(BALANCE, key.balance_filter(), CLEARED_BALANCE),
                    critical=False,
                ),
                SagaStep(
                    "write_property",
                    lambda: self._write_property(schema, criteria, schema.reopen_patch()),
                ),
            ],
            unit=str(key),
        )
        outcome = saga.run()

        extra = []
        if outcome.status_of("clear_balance") is StepStatus.COMPLETED and not outcome.results["clear_balance"]:
            extra.append(f"clear_balance: no Balance row for {key}")

        result = TransitionResult(
            property_id=key,
            status=PropertyStatus.AVAILABLE,
            buyer_name=buyer,
            property_row=outcome.results["write_property"],
            outcome=outcome,
            extra_warnings=extra,
        )
        self.publisher.publish(
            PROPERTY_REOPENED,
            key,
            {
                "previous_buyer": buyer,
                "clients_deleted": outcome.results.get("delete_clients"),
                "documents_deleted": outcome.results.get("delete_documents"),
            },
            warnings=result.warnings,
        )
        return result
