"""
Demo RM partial-picking lines.

Run 1001 mixes eligible and ineligible lines. Run 1002 has line types that
share a RowNum, so only the (RowNum, LineId) pair tells them apart.
"""

from rm_partial_ui.models.rm import RMLine


def _line(
    run_no: int,
    row_num: int,
    line_id: int,
    item_key: str,
    to_pick: float,
    picked: float | None,
    line_type: str = "RM",
    std_qty: float = 25.0,
    pack_size: float = 25.0,
) -> RMLine:
    return RMLine(
        run_no=run_no,
        row_num=row_num,
        line_id=line_id,
        batch_no=f"B{run_no}-{row_num:02d}",
        line_type=line_type,
        item_key=item_key,
        location="WH-RM-01",
        unit="KG",
        standard_qty=std_qty,
        pack_size=pack_size,
        to_picked_partial_qty=to_pick,
        picked_partial_qty=picked,
        rec_user_id="planner",
        modified_by="planner",
    )


DEMO_LINES: dict[int, list[RMLine]] = {
    1001: [
        _line(1001, 1, 1, "SUGAR-FINE", 12.5, 0),
        _line(1001, 2, 1, "SALT-IODIZED", 4.0, None),
        _line(1001, 3, 1, "STARCH-CORN", 7.25, 0),
        _line(1001, 4, 1, "PEPPER-BLACK", 5.0, 5.0),
        _line(1001, 5, 1, "GARLIC-PWD", 0, 0),
        _line(1001, 6, 1, "ONION-PWD", 2.5, 0),
        _line(1001, 7, 1, "MSG", 1.75, 0),
        _line(1001, 8, 1, "PAPRIKA", 3.0, -1),
        _line(1001, 9, 1, "CHILI-FLAKE", 0.5, 0),
        _line(1001, 10, 1, "YEAST-EXT", 6.0, 0),
    ],
    1002: [
        _line(1002, 1, 1, "FLOUR-WHEAT", 10.0, 0),
        _line(1002, 1, 2, "FLOUR-WHEAT", 8.0, 0, line_type="FG"),
        _line(1002, 2, 1, "OIL-PALM", 3.5, 3.5),
        _line(1002, 2, 2, "OIL-PALM", 3.5, 0, line_type="FG"),
    ],
}
