"""Data models for scraped rows and persisted records."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class MovementRow(BaseModel):
    """One row of the movements (transaction history) table."""

    date_text: str = ""
    entity: str = ""
    movement_type: str = ""
    document_ref: str = ""
    reward_name: str = ""
    source_deposit: str = ""
    dest_deposit: str = ""
    quantity: int = 0


class ProductRow(BaseModel):
    """One row of the stock table (one product at one deposit)."""

    description: str
    category: str
    season_tag: str
    deposit_location: str
    stock_text: str


class RewardRow(BaseModel):
    """One row of the reward catalog table."""

    description: str
    category: str = ""
    cost: str = ""
    price: str = ""
    points: str = ""
    status: str = ""


class Outflow(BaseModel):
    entity: str
    quantity: int = Field(default=0, ge=0)


class CoffeeAggregate(BaseModel):
    """Outflow totals per entity for one coffee-combo reward type."""

    reward_type: str = Field(..., description="Matched coffee label, original casing")
    outflows: list[Outflow] = Field(default_factory=list)
    captured_at: datetime
    period_month: str = Field(..., description="YYYY-MM")


class OtherItemRecord(MovementRow):
    """A non-coffee movement row as stored in the live collection."""

    captured_at: datetime
    period_month: str


class LedgerEntry(BaseModel):
    """Permanent movement ledger entry keyed by the derived composite id."""

    id: str = Field(..., description="Pipe-joined identity fields")
    date_raw: str
    date_parsed: Optional[datetime] = None
    entity: str
    movement_type: str
    document_ref: str
    reward_name: str
    source_deposit: str
    dest_deposit: str
    quantity: int
    is_coffee_combo: bool = False
    period_month: str
    captured_at: datetime


class StockItem(BaseModel):
    """Stock per deposit for one product, merged with its catalog entry."""

    description: str
    category: str
    stock_bettica: int = 0
    stock_grupogen: int = 0
    stock_monteverde: int = 0
    stock_tobago1: int = 0
    stock_total: int = 0
    cost: str = ""
    price: str = ""
    points: str = ""
    status: str = ""
    captured_at: datetime


class RunResult(BaseModel):
    """Outcome of a job trigger."""

    ok: bool
    skipped: bool = False
    error: Optional[str] = None
    running: Optional[str] = Field(default=None, description="Job holding the lock when skipped")
    running_for_seconds: Optional[float] = None
