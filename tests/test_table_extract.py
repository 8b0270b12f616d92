"""Tests for table row extraction and column plans."""
from agr_sync.jobs.items import parse_products_page, parse_rewards_page
from agr_sync.jobs.movements import parse_movements_page
from agr_sync.parse.table import ColumnSpec, discover_total_pages, extract_rows

from conftest import movement_table, pagination, product_table, reward_table


def test_movement_rows_prefer_link_text():
    """Document and reward columns use the link text when a link is present."""
    html = movement_table(
        [("01/11/2025 10:00:00", "MONTEVERDE SRL", "Egreso", "DOC-1", "(1063) CANJE CAFE + ALFAJOR", "Dep A", "Cliente", "1.200")]
    )
    rows = parse_movements_page(html)

    assert len(rows) == 1
    row = rows[0]
    assert row.document_ref == "DOC-1"
    assert row.reward_name == "(1063) CANJE CAFE + ALFAJOR"
    assert row.quantity == 1200


def test_link_preference_falls_back_to_cell_text():
    """Without a link, the full cell text is used."""
    html = "<table><tbody><tr><td>Plain <b>text</b></td></tr></tbody></table>"
    rows = extract_rows(html, [ColumnSpec("value", 1, prefer="a")])
    assert rows == [{"value": "Plain text"}]


def test_movement_rows_keep_empty_fields():
    """Movements never drop a row for missing cells."""
    html = "<table><tbody><tr><td>02/11/2025</td><td>TOBAGO</td></tr></tbody></table>"
    rows = parse_movements_page(html)

    assert len(rows) == 1
    assert rows[0].entity == "TOBAGO"
    assert rows[0].reward_name == ""
    assert rows[0].quantity == 0


def test_product_rows_drop_incomplete():
    """Products with any empty required field are dropped."""
    html = product_table(
        [
            ("Cafe chico", "Bebidas", "Todo el año", "DEPOSITO BETTICA", "10"),
            ("Alfajor", "Snacks", "Todo el año", "", "5"),
        ]
    )
    rows = parse_products_page(html)

    assert [r.description for r in rows] == ["Cafe chico"]
    assert rows[0].deposit_location == "DEPOSITO BETTICA"
    assert rows[0].stock_text == "10"


def test_product_description_requires_paragraph():
    """The description column only reads the nested paragraph."""
    html = (
        "<table><tbody><tr class='news-item'>"
        "<td>1</td><td>2</td><td>no paragraph</td><td>Cat</td><td>S</td><td>-</td>"
        "<td>DEPOSITO BETTICA</td><td>-</td><td>3</td>"
        "</tr></tbody></table>"
    )
    assert parse_products_page(html) == []


def test_product_rows_need_news_item_class():
    """Only tr.news-item rows are products."""
    html = product_table([("Cafe", "Bebidas", "Todo", "DEPOSITO BETTICA", "1")]).replace(" class='news-item'", "")
    assert parse_products_page(html) == []


def test_reward_rows():
    """Reward rows read description from the paragraph and pricing cells by position."""
    html = reward_table([("Cafe chico", "Bebidas", "100,00", "150,00", "300", "Activo")])
    rows = parse_rewards_page(html)

    assert len(rows) == 1
    reward = rows[0]
    assert reward.description == "Cafe chico"
    assert reward.category == "Bebidas"
    assert reward.cost == "100,00"
    assert reward.price == "150,00"
    assert reward.points == "300"
    assert reward.status == "Activo"


def test_reward_description_falls_back_to_second_cell():
    """When the third cell has no paragraph, the second cell's paragraph is used."""
    html = (
        "<table><tbody><tr>"
        "<td>1</td><td><p>Gaseosa</p></td><td>img</td><td>Bebidas</td><td>-</td>"
        "<td>1</td><td>2</td><td>3</td><td>Activo</td>"
        "</tr></tbody></table>"
    )
    rows = parse_rewards_page(html)
    assert [r.description for r in rows] == ["Gaseosa"]


def test_reward_description_falls_back_to_any_paragraph_in_row():
    """When neither the third nor the second cell has a paragraph, any paragraph in the row is used."""
    html = (
        "<table><tbody><tr>"
        "<td>1</td><td>img</td><td>-</td><td>Bebidas</td><td><p>Te verde</p></td>"
        "<td>10</td><td>20</td><td>30</td><td>Activo</td>"
        "</tr></tbody></table>"
    )
    rows = parse_rewards_page(html)

    assert [r.description for r in rows] == ["Te verde"]
    assert rows[0].price == "20"


def test_row_scan_only_applies_when_enabled():
    """Plans without scan_row never look outside their listed cells."""
    html = "<table><tbody><tr><td>a</td><td><p>elsewhere</p></td></tr></tbody></table>"
    plan = [ColumnSpec("value", 1, prefer="p", strict=True)]
    assert extract_rows(html, plan) == [{"value": ""}]


def test_reward_rows_without_description_dropped():
    """Rewards without any description paragraph are skipped."""
    html = "<table><tbody><tr><td>1</td><td>2</td><td>3</td></tr></tbody></table>"
    assert parse_rewards_page(html) == []


def test_discover_total_pages():
    """Highest numeric page button wins; no control means one page."""
    assert discover_total_pages(f"<html><body>{pagination(4)}</body></html>") == 4
    assert discover_total_pages("<html><body><table></table></body></html>") == 1
    assert discover_total_pages("") == 1


def test_extract_rows_empty_html():
    """Empty input yields no rows."""
    assert extract_rows("", [ColumnSpec("a", 1)]) == []
    assert extract_rows(None, [ColumnSpec("a", 1)]) == []
