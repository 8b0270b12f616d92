"""URL builders for AGR Cloud endpoints."""
from urllib.parse import urlencode

from agr_sync.config import config
from agr_sync.core.periods import DateWindow


def get_login_url() -> str:
    return config.BASE_URL


def get_movements_url(window: DateWindow, page: int, page_size: int) -> str:
    """Movements detail table for the window, newest first."""
    query = urlencode(
        {
            "startDate": window.start_param,
            "endDate": window.end_param,
            "orderBy": "date-desc",
            "page": page,
            "pageSize": page_size,
        }
    )
    return f"{config.BASE_URL}/filtered/items/movements/details/service/2?{query}"


def get_stocks_url(page: int, page_size: int) -> str:
    return f"{config.BASE_URL}/filtered/stocks/2?orderBy=description-asc&page={page}&pageSize={page_size}"


def get_rewards_url(page: int, page_size: int) -> str:
    return (
        f"{config.BASE_URL}/filtered/items/2"
        f"?minCost=0.00&maxCost=100000.00&minPoints=0.00&maxPoints=100000.00"
        f"&page={page}&pageSize={page_size}"
    )
