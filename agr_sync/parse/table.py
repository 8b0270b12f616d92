"""Extract fixed-column table rows from rendered portal pages."""
import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from selectolax.parser import HTMLParser, Node

from agr_sync.parse.normalize import clean

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColumnSpec:
    """
    One column of an extraction plan.

    index: 1-based cell position in the row.
    prefer: nested element whose text wins over the cell text ("a", "p").
    strict: when the preferred element is missing, yield "" instead of the
        cell text and try the fallback cells.
    fallbacks: other 1-based cell positions tried in order when strict.
    scan_row: when strict and no listed cell has the preferred element,
        take the first one found anywhere in the row.
    """

    name: str
    index: int
    prefer: str | None = None
    strict: bool = False
    fallbacks: tuple[int, ...] = ()
    scan_row: bool = False


def _cells(row: Node) -> list[Node]:
    return [child for child in row.iter() if child.tag in ("td", "th")]


def _cell_text(node: Node) -> str:
    return clean(node.text(deep=True, separator=" "))


def _pick(row: Node, cells: list[Node], spec: ColumnSpec) -> str:
    for position in (spec.index, *spec.fallbacks):
        if position < 1 or position > len(cells):
            continue
        cell = cells[position - 1]
        if spec.prefer:
            nested = cell.css_first(spec.prefer)
            if nested is not None:
                value = _cell_text(nested)
                if value or not spec.strict:
                    return value
                continue
            if spec.strict:
                continue
        return _cell_text(cell)

    if spec.scan_row and spec.prefer:
        for nested in row.css(spec.prefer):
            value = _cell_text(nested)
            if value:
                return value
    return ""


def extract_rows(
    html: str | None,
    plan: Sequence[ColumnSpec],
    row_selector: str = "tbody tr",
    required: Iterable[str] = (),
) -> list[dict[str, str]]:
    """
    Apply a column plan to every row matched by row_selector.

    Rows without cells are ignored. Rows with an empty value in any
    required column are dropped; other empty values are kept as "".
    """
    if not html:
        return []

    required = tuple(required)
    parser = HTMLParser(html)
    rows: list[dict[str, str]] = []
    dropped = 0

    for row in parser.css(row_selector):
        cells = _cells(row)
        if not cells:
            continue
        record = {spec.name: _pick(row, cells, spec) for spec in plan}
        if any(not record.get(name) for name in required):
            dropped += 1
            continue
        rows.append(record)

    if dropped:
        logger.debug(f"Dropped {dropped} rows with missing required fields")
    return rows


def discover_total_pages(html: str | None) -> int:
    """Highest page number shown in the pagination control, 1 when absent."""
    if not html:
        return 1
    parser = HTMLParser(html)
    numbers = []
    for button in parser.css("ul.pagination button.page"):
        text = button.text(strip=True)
        if text.isdigit():
            numbers.append(int(text))
    return max(numbers) if numbers else 1


# Column plans for the three portal tables

MOVEMENT_COLUMNS = (
    ColumnSpec("date_text", 1),
    ColumnSpec("entity", 2),
    ColumnSpec("movement_type", 3),
    ColumnSpec("document_ref", 4, prefer="a"),
    ColumnSpec("reward_name", 5, prefer="a"),
    ColumnSpec("source_deposit", 6),
    ColumnSpec("dest_deposit", 7),
    ColumnSpec("quantity", 8),
)

PRODUCT_COLUMNS = (
    ColumnSpec("description", 3, prefer="p", strict=True),
    ColumnSpec("category", 4),
    ColumnSpec("season_tag", 5),
    ColumnSpec("deposit_location", 7),
    ColumnSpec("stock_text", 9),
)
PRODUCT_REQUIRED = ("description", "category", "season_tag", "deposit_location", "stock_text")
PRODUCT_ROW_SELECTOR = "tbody tr.news-item"

REWARD_COLUMNS = (
    ColumnSpec("description", 3, prefer="p", strict=True, fallbacks=(2,), scan_row=True),
    ColumnSpec("category", 4),
    ColumnSpec("cost", 6),
    ColumnSpec("price", 7),
    ColumnSpec("points", 8),
    ColumnSpec("status", 9),
)
REWARD_REQUIRED = ("description",)
