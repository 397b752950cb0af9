"""
Read access to stored tariffs.

Tariffs are kept outside the simulator (a JSON document or a document store)
in the camelCase layout used by the tariff admin page. This module validates
those records and turns them into immutable Tariff objects. It never writes.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from parse_result import Tariff
from settings import PERIODS

log = logging.getLogger(__name__)


class TariffRecord(BaseModel):
    """One stored tariff, as persisted by the tariff admin page."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str | int] = None
    company_name: str = Field(alias="companyName", min_length=1)
    price_kwh_p1: float = Field(0.0, alias="priceKwhP1", ge=0)
    price_kwh_p2: float = Field(0.0, alias="priceKwhP2", ge=0)
    price_kwh_p3: float = Field(0.0, alias="priceKwhP3", ge=0)
    price_kwh_p4: float = Field(0.0, alias="priceKwhP4", ge=0)
    price_kwh_p5: float = Field(0.0, alias="priceKwhP5", ge=0)
    price_kwh_p6: float = Field(0.0, alias="priceKwhP6", ge=0)
    price_power_p1: float = Field(0.0, alias="pricePowerP1", ge=0)
    price_power_p2: float = Field(0.0, alias="pricePowerP2", ge=0)
    price_power_p3: float = Field(0.0, alias="pricePowerP3", ge=0)
    price_power_p4: float = Field(0.0, alias="pricePowerP4", ge=0)
    price_power_p5: float = Field(0.0, alias="pricePowerP5", ge=0)
    price_power_p6: float = Field(0.0, alias="pricePowerP6", ge=0)
    fixed_term: float = Field(0.0, alias="fixedTerm", ge=0)
    promo: Optional[str] = None
    surplus_compensation_price: float = Field(0.0, alias="surplusCompensationPrice", ge=0)

    def to_tariff(self, default_id: str) -> Tariff:
        return Tariff(
            id=str(self.id) if self.id is not None else default_id,
            company_name=self.company_name.strip(),
            price_kwh=tuple(getattr(self, f"price_kwh_{p}") for p in PERIODS),
            price_power=tuple(getattr(self, f"price_power_{p}") for p in PERIODS),
            fixed_term_monthly=self.fixed_term,
            promo=self.promo or "",
            surplus_compensation_price=self.surplus_compensation_price,
        )


class TariffStore(Protocol):
    """Anything that can list the tariffs to compare."""

    def list_tariffs(self) -> list[Tariff]: ...


def tariffs_from_records(records: Iterable[Mapping[str, Any]]) -> list[Tariff]:
    """
    Validate stored records into Tariffs, keeping their order.

    Records without an ``id`` get their 1-based position as id.

    Raises:
        ValueError: A record fails validation (message names its position).
    """
    tariffs: list[Tariff] = []
    for position, record in enumerate(records, start=1):
        try:
            parsed = TariffRecord.model_validate(record)
        except ValidationError as exc:
            raise ValueError(f"Invalid tariff record #{position}: {exc}") from exc
        tariffs.append(parsed.to_tariff(default_id=str(position)))
    return tariffs


class JsonTariffStore:
    """Tariffs read from a JSON array on disk."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def list_tariffs(self) -> list[Tariff]:
        with self.path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
        if not isinstance(payload, list):
            raise ValueError(f"{self.path} must contain a JSON array of tariffs")
        tariffs = tariffs_from_records(payload)
        log.info("Loaded %d tariffs from %s", len(tariffs), self.path)
        return tariffs
