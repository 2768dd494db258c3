from typing import Iterable, List, Literal, Optional, Sequence

from cart.items import CartItem

_ALIGN_RULES = {"l": ":---", "c": ":---:", "r": "---:"}


def format_money(value: float) -> str:
    return f"${value:,.2f}"


def markdown_table(
    headers: Sequence[object],
    rows: Iterable[Sequence[object]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Render a Markdown table. Cells are converted with ``str``.

    Args:
        headers: column headers.
        rows: table body, one sequence per row.
        aligns: 'l', 'c' or 'r' per column; left aligned when omitted.
    """
    headers = [str(h) for h in headers]
    if aligns is None:
        aligns = ["l"] * len(headers)
    elif len(aligns) != len(headers):
        raise ValueError("Length of aligns must match number of headers.")

    def line(cells: Iterable[object]) -> str:
        return "| " + " | ".join(str(c).replace("|", "\\|") for c in cells) + " |"

    lines = [line(headers), line(_ALIGN_RULES[a] for a in aligns)]
    lines.extend(line(row) for row in rows)
    return "\n".join(lines)


def cart_summary_markdown(items: List[CartItem]) -> str:
    """Order summary shown before checkout: one line per item plus the total."""
    if not items:
        return "### Order Summary\n\nYour cart is empty."
    table = markdown_table(
        ["Product", "Unit Price", "Quantity", "Line Total"],
        [
            [i.name, format_money(i.price), i.quantity, format_money(i.subtotal)]
            for i in items
        ],
        ["l", "r", "c", "r"],
    )
    total = sum(i.subtotal for i in items)
    return f"### Order Summary\n\n{table}\n\n**Total:** {format_money(total)}"


def quantity_cap_notice(name: str, in_cart: int, cap: int) -> Optional[str]:
    """Warning for a cart line holding more than the picker can select, else None."""
    if in_cart <= cap:
        return None
    return (
        f"Your cart holds {in_cart} x {name}, but at most {cap} can be ordered now. "
        f"Updating lowers it to the quantity you pick."
    )
