"""
Raw-material partial picking models.

An RMLine mirrors one row of the backend's partial-picking search result.
Rows are identified by the composite RowKey (RowNum, LineId): several line
types can share a RowNum inside one run, so RowNum on its own is never used
as an identity.

Wire names (RunNo, RowNum, ...) only appear in parse_line/serialize_line;
the rest of the package works with the snake_case attributes.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from benedict import benedict


@dataclass(frozen=True, slots=True, order=True)
class RowKey:
    """Composite identity of a line within a run's result set."""

    row_num: int
    line_id: int

    @property
    def token(self) -> str:
        """Return the "RowNum:LineId" string used by UI widgets."""
        return f"{self.row_num}:{self.line_id}"

    def to_item(self) -> dict[str, int]:
        """Return the remove-request item for this key."""
        return {"rowNum": self.row_num, "lineId": self.line_id}

    @classmethod
    def parse(cls, token: str) -> "RowKey":
        """
        Parse a "RowNum:LineId" token. Either part may be negative.

        Raises:
            ValueError: If the token is not two integers joined by ":".
        """
        row_num, sep, line_id = token.strip().partition(":")
        if not sep:
            raise ValueError(f"Invalid row key: {token!r}")
        return cls(int(row_num), int(line_id))


@dataclass(frozen=True, slots=True)
class RMLine:
    """One partial-picking line of a production run."""

    run_no: int
    row_num: int
    line_id: int
    batch_no: str = ""
    line_type: str = ""
    item_key: str = ""
    location: str = ""
    unit: str = ""
    standard_qty: float = 0.0
    pack_size: float = 0.0
    to_picked_partial_qty: float = 0.0
    picked_partial_qty: float | None = None
    rec_user_id: str = ""
    modified_by: str = ""

    @property
    def key(self) -> RowKey:
        """Return the composite identity of this line."""
        return RowKey(self.row_num, self.line_id)


def is_selectable(line: RMLine) -> bool:
    """
    Return True when the line may be removed.

    A line is eligible while a partial quantity is still to be picked and
    nothing has been picked yet. A missing picked quantity counts as zero.
    """
    picked = line.picked_partial_qty or 0
    return line.to_picked_partial_qty > 0 and picked <= 0


def selectable_keys(lines: Iterable[RMLine]) -> frozenset[RowKey]:
    """Return the composite keys of every eligible line."""
    return frozenset(line.key for line in lines if is_selectable(line))


def parse_line(payload: Mapping[str, Any]) -> RMLine:
    """
    Build an RMLine from a backend record.

    Missing or null descriptive fields become empty strings and null
    quantities become zero, except PickedPartialQty which keeps None.
    """
    b = benedict(dict(payload), keyattr_dynamic=True)
    picked = b.get("PickedPartialQty")
    return RMLine(
        run_no=int(b.get("RunNo") or 0),
        row_num=int(b.get("RowNum") or 0),
        line_id=int(b.get("LineId") or 0),
        batch_no=str(b.get("BatchNo") or ""),
        line_type=str(b.get("LineTyp") or ""),
        item_key=str(b.get("ItemKey") or ""),
        location=str(b.get("Location") or ""),
        unit=str(b.get("Unit") or ""),
        standard_qty=float(b.get("StandardQty") or 0),
        pack_size=float(b.get("PackSize") or 0),
        to_picked_partial_qty=float(b.get("ToPickedPartialQty") or 0),
        picked_partial_qty=None if picked is None else float(picked),
        rec_user_id=str(b.get("RecUserId") or ""),
        modified_by=str(b.get("ModifiedBy") or ""),
    )


def serialize_line(line: RMLine) -> dict[str, Any]:
    """Convert an RMLine back into its wire representation."""
    return {
        "RunNo": line.run_no,
        "RowNum": line.row_num,
        "BatchNo": line.batch_no,
        "LineTyp": line.line_type,
        "LineId": line.line_id,
        "ItemKey": line.item_key,
        "Location": line.location,
        "Unit": line.unit,
        "StandardQty": line.standard_qty,
        "PackSize": line.pack_size,
        "ToPickedPartialQty": line.to_picked_partial_qty,
        "PickedPartialQty": line.picked_partial_qty,
        "RecUserId": line.rec_user_id,
        "ModifiedBy": line.modified_by,
    }
