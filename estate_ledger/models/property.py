"""Project table schemas for property inventory.

Each project keeps its lots in its own table and the two known projects
use different column sets. A :class:`ProjectSchema` captures what the
lifecycle code needs to know about one of them: which column names the
buyer, which columns hold the contract value and first amortization, which
columns a sale may write, and which columns a reopen blanks.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Mapping

from estate_ledger.exceptions import ValidationError
from estate_ledger.models.base import Row, UnitKey
from estate_ledger.models.enums import FieldKind, PropertyStatus
from estate_ledger.models.values import to_amount, to_text

STATUS = "Status"
IDENTITY_FIELDS = ("Block", "Lot")


@dataclass(frozen=True)
class ProjectSchema:
    """Column layout of one project's property table."""

    project: str  # Table name, also the ``Project`` value in Balance rows
    short_name: str
    owner_field: str
    contract_value_field: str
    first_amortization_field: str
    fields: Mapping[str, FieldKind]  # Columns a sale writes, besides Status
    reopen_cleared: tuple[str, ...]

    def buyer_name(self, row: Mapping[str, Any]) -> str | None:
        """Buyer name held by ``row``, or None when blank."""
        name = to_text(row.get(self.owner_field))
        return name or None

    def unit_key(self, row: Mapping[str, Any]) -> UnitKey:
        return UnitKey(self.project, row.get("Block", ""), row.get("Lot", ""))

    def status(self, row: Mapping[str, Any]) -> PropertyStatus:
        """Status of ``row``; anything other than Sold counts as Available."""
        if to_text(row.get(STATUS)).lower() == PropertyStatus.SOLD.value.lower():
            return PropertyStatus.SOLD
        return PropertyStatus.AVAILABLE

    def validate_sale(self, sale_details: Mapping[str, Any]) -> None:
        """Check that ``sale_details`` only names columns of this schema.

        Raises
        ------
        ValidationError
            If a column belongs to another project (or none at all).
        """
        unknown = sorted(
            name for name in sale_details if name not in self.fields and name != STATUS
        )
        if unknown:
            raise ValidationError(
                f"Fields {unknown} are not part of the {self.project} schema"
            )

    def build_sale_row(
        self,
        property_row: Mapping[str, Any],
        sale_details: Mapping[str, Any],
        today: date | None = None,
    ) -> Row:
        """Full row a sale writes: every editable column plus ``Status = Sold``.

        Values from ``sale_details`` win over the stored row. Empty numeric
        columns become 0, empty text columns become "", and an empty
        reservation date becomes today.

        Raises
        ------
        ValidationError
            If the sale names foreign columns or leaves Block/Lot blank.
        """
        self.validate_sale(sale_details)
        merged = {**property_row, **sale_details}

        missing = [name for name in IDENTITY_FIELDS if to_text(merged.get(name)) == ""]
        if missing:
            raise ValidationError(f"Missing required identity fields: {missing}")

        today = today or date.today()
        row: Row = {}
        for name, kind in self.fields.items():
            value = merged.get(name)
            if name in IDENTITY_FIELDS:
                row[name] = to_text(value)
            elif kind is FieldKind.NUMERIC:
                row[name] = to_amount(value)
            elif kind is FieldKind.DATE:
                row[name] = to_text(value) or today.isoformat()
            else:
                row[name] = to_text(value)
        row[STATUS] = PropertyStatus.SOLD.value
        return row

    def reopen_patch(self) -> Row:
        """Patch that makes a unit Available and anonymous again."""
        patch: Row = {name: "" for name in self.reopen_cleared}
        patch[STATUS] = PropertyStatus.AVAILABLE.value
        return patch

    def contract_value(self, row: Mapping[str, Any]):
        return to_amount(row.get(self.contract_value_field))

    def first_amortization(self, row: Mapping[str, Any]):
        return to_amount(row.get(self.first_amortization_field))


_T, _N, _D = FieldKind.TEXT, FieldKind.NUMERIC, FieldKind.DATE

LIVING_WATER = ProjectSchema(
    project="Living Water Subdivision",
    short_name="LivingWater",
    owner_field="Owner",
    contract_value_field="Net Contract Price",
    first_amortization_field="First MA",
    fields={
        "Block": _T,
        "Lot": _T,
        "Price per sqm": _N,
        "TCP": _N,
        "First MA": _N,
        "Owner": _T,
        "Term": _T,
        "Lot Area": _N,
        "TSP": _N,
        "MISC FEE": _N,
        "2ndto60th MA": _N,
        "First Due Month": _T,
        "Date of Reservation": _D,
        "Seller Name": _T,
        "Broker / Realty": _T,
        "Reservation": _N,
        "Due Date 15/30": _T,
        "Amount": _N,
        "Net Contract Price": _N,
        "Realty": _T,
        "Optional: Advance Payment": _N,
        "1st MA net of Advance Payment": _N,
    },
    reopen_cleared=(
        "Owner",
        "Due Date 15/30",
        "First Due Month",
        "Realty",
        "Date of Reservation",
        "Seller Name",
        "Broker / Realty",
    ),
)

HAVAHILLS = ProjectSchema(
    project="Havahills Estate",
    short_name="Havahills",
    owner_field="Buyers Name",
    contract_value_field="TCP",
    first_amortization_field="1ST MA",
    fields={
        "Block": _T,
        "Lot": _T,
        "Due": _T,
        "Date of Reservation": _D,
        "First Due": _T,
        "Terms": _T,
        "Amount": _N,
        "Realty": _T,
        "Buyers Name": _T,
        "Seller Name": _T,
        "Sales Director": _T,
        "Broker": _T,
        "Lot Size": _N,
        "Price": _N,
        "Payment Scheme": _T,
        "Vat Status": _T,
        "TSP": _N,
        "Mode of Payment": _T,
        "Reservation": _N,
        "Comm Price": _N,
        "Misc Fee": _N,
        "Vat": _N,
        "TCP": _N,
        "1ST MA": _N,
        "1ST MA with Holding Fee": _N,
        "2ND TO 48TH MA": _N,
        "NEW TERM": _T,
        "PASALO PRICE": _N,
        "NEW MA": _N,
    },
    reopen_cleared=(
        "Buyers Name",
        "Due",
        "First Due",
        "Realty",
        "Date of Reservation",
        "Seller Name",
        "Broker",
        "Sales Director",
        "Mode of Payment",
    ),
)

PROJECT_SCHEMAS: dict[str, ProjectSchema] = {
    schema.project: schema for schema in (LIVING_WATER, HAVAHILLS)
}


def get_schema(project: str) -> ProjectSchema:
    """Look up a schema by table name or short name.

    Raises
    ------
    ValidationError
        If the project is unknown.
    """
    for schema in PROJECT_SCHEMAS.values():
        if project in (schema.project, schema.short_name):
            return schema
    raise ValidationError(f"Unknown project {project!r}")


def detect_schema(row: Mapping[str, Any]) -> ProjectSchema:
    """Infer the schema of a property row from its buyer column."""
    for schema in PROJECT_SCHEMAS.values():
        if schema.owner_field in row:
            return schema
    raise ValidationError("Cannot tell which project the property row belongs to")
