"""Inventory and buyer generators for the project tables."""

from __future__ import annotations

import random
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterator

from estate_ledger.generators.base import BaseGenerator
from estate_ledger.models.base import Row
from estate_ledger.models.enums import DueDate, FieldKind, PaymentType, PropertyStatus, VatStatus
from estate_ledger.models.property import HAVAHILLS, LIVING_WATER, STATUS, ProjectSchema

CENTS = Decimal("0.01")

# Pricing column names per project: generic pricing key -> column
PRICING_COLUMNS: dict[str, dict[str, str]] = {
    LIVING_WATER.project: {
        "lot_area": "Lot Area",
        "price_per_sqm": "Price per sqm",
        "tsp": "TSP",
        "misc_fee": "MISC FEE",
        "tcp": "TCP",
        "reservation": "Reservation",
        "net_contract_price": "Net Contract Price",
        "monthly": "First MA",
        "later_monthly": "2ndto60th MA",
        "term": "Term",
    },
    HAVAHILLS.project: {
        "lot_area": "Lot Size",
        "price_per_sqm": "Price",
        "tsp": "TSP",
        "misc_fee": "Misc Fee",
        "tcp": "TCP",
        "reservation": "Reservation",
        "monthly": "1ST MA",
        "later_monthly": "2ND TO 48TH MA",
        "term": "Terms",
    },
}

# Term length in months per project
TERMS = {LIVING_WATER.project: 60, HAVAHILLS.project: 48}

# Sale columns per project: generic sale key -> column
SALE_COLUMNS: dict[str, dict[str, str]] = {
    LIVING_WATER.project: {
        "due": "Due Date 15/30",
        "first_due": "First Due Month",
        "broker": "Broker / Realty",
    },
    HAVAHILLS.project: {
        "due": "Due",
        "first_due": "First Due",
        "broker": "Broker",
        "sales_director": "Sales Director",
        "mode_of_payment": "Mode of Payment",
    },
}


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


class InventoryGenerator(BaseGenerator):
    """Generate Available lots for one project table.

    Parameters
    ----------
    schema : ProjectSchema
        Project whose columns the rows use.
    seed : int | None
        Random seed for reproducibility.
    """

    PRICES_PER_SQM = [2500, 3000, 3500, 4000, 4500]
    MISC_FEE_RATE = Decimal("0.07")
    RESERVATION = Decimal("10000")

    def __init__(self, schema: ProjectSchema, seed: int | None = None) -> None:
        super().__init__(seed)
        self.schema = schema

    def generate(self, block: int | str, lot: int | str) -> Row:
        """Generate one Available lot."""
        row: Row = {
            name: Decimal("0") if kind is FieldKind.NUMERIC else ""
            for name, kind in self.schema.fields.items()
        }
        row["Block"] = str(block)
        row["Lot"] = str(lot)
        columns = PRICING_COLUMNS[self.schema.project]
        for key, value in self._pricing().items():
            if key in columns:
                row[columns[key]] = value
        if self.schema is HAVAHILLS:
            row["Vat Status"] = VatStatus.NON_VAT.value
            row["Comm Price"] = row["TSP"]
            row["Payment Scheme"] = "In-house"
        row[STATUS] = PropertyStatus.AVAILABLE.value
        return row

    def generate_batch(self, blocks: int, lots_per_block: int) -> Iterator[Row]:
        """Generate every lot of ``blocks`` x ``lots_per_block``.

        Yields
        ------
        Row
            Property rows, block by block.
        """
        for block in range(1, blocks + 1):
            for lot in range(1, lots_per_block + 1):
                yield self.generate(block, lot)

    def _pricing(self) -> dict[str, object]:
        lot_area = Decimal(random.randint(100, 300))
        price_per_sqm = Decimal(random.choice(self.PRICES_PER_SQM))
        tsp = lot_area * price_per_sqm
        misc_fee = _money(tsp * self.MISC_FEE_RATE)
        tcp = tsp + misc_fee
        term = TERMS[self.schema.project]
        net = tcp - self.RESERVATION
        monthly = _money(net / term)
        return {
            "lot_area": lot_area,
            "price_per_sqm": price_per_sqm,
            "tsp": tsp,
            "misc_fee": misc_fee,
            "tcp": tcp,
            "reservation": self.RESERVATION,
            "net_contract_price": net,
            "monthly": monthly,
            "later_monthly": monthly,
            "term": str(term),
        }


class BuyerGenerator(BaseGenerator):
    """Generate the sale details entered when a lot is reserved."""

    def __init__(self, schema: ProjectSchema, seed: int | None = None) -> None:
        super().__init__(seed)
        self.schema = schema

    def generate(self, today: date | None = None) -> Row:
        """Generate sale details for one buyer.

        Returns
        -------
        Row
            Columns of ``schema`` only: buyer, seller, broker, realty,
            reservation date and due day.
        """
        today = today or date.today()
        reserved = today - timedelta(days=random.randint(0, 90))
        first_due = reserved + timedelta(days=30)
        generic = {
            "due": random.choice(list(DueDate)).value,
            "first_due": first_due.strftime("%B %Y"),
            "broker": self.fake.name(),
            "sales_director": self.fake.name(),
            "mode_of_payment": random.choice(list(PaymentType)).value,
        }

        sale: Row = {
            self.schema.owner_field: self.fake.name(),
            "Seller Name": self.fake.name(),
            "Realty": f"{self.fake.last_name()} Realty",
            "Date of Reservation": reserved.isoformat(),
        }
        for key, column in SALE_COLUMNS[self.schema.project].items():
            sale[column] = generic[key]
        return sale
