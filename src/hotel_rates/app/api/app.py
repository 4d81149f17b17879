from __future__ import annotations

import logging
import os
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from hotel_rates.adapters.http.planning_api import PlanningApiClient
from hotel_rates.app.auth.api_key import ApiKeyAuth
from hotel_rates.app.config.loader import SUPPORTED_SCHEMA_VERSIONS
from hotel_rates.app.models.config import HotelConfig
from hotel_rates.app.models.requests import (
    BulkEditRequest,
    BulkEditResponse,
    NextPeriodResponse,
    RatePeriodRequest,
    RatePeriodResponse,
)
from hotel_rates.engine.bulk_edit import (
    STATUS_NOTHING_TO_APPLY,
    BulkEditOutcome,
    InventoryEdit,
    RestrictionEdit,
    apply_bulk_price_edit,
    apply_cell_edit,
    has_inventory_changes,
    has_restriction_changes,
    new_bulk_buffer,
)
from hotel_rates.engine.dates import nights_between
from hotel_rates.engine.rate_form import RateFormController
from hotel_rates.persistence.dynamo_hotels import (
    DynamoHotelConfigs,
    HotelConfigRecord,
    InMemoryHotelConfigs,
)
from hotel_rates.persistence.dynamo_rates import DynamoRates
from hotel_rates.persistence.memory_rates import InMemoryRates
from hotel_rates.util.errors import TransportError, ValidationFailure
from hotel_rates.util.metrics import CloudWatchMetrics

rates_table = os.getenv("RATES_TABLE")
hotels_table = os.getenv("HOTELS_TABLE")
planning_api_url = os.getenv("PLANNING_API_URL")

if rates_table:
    rates_client = DynamoRates(rates_table)
elif planning_api_url:
    rates_client = PlanningApiClient.from_env()
else:
    rates_client = InMemoryRates()
hotels_repo = DynamoHotelConfigs(hotels_table) if hotels_table else InMemoryHotelConfigs()
metrics = CloudWatchMetrics.from_env()

logger = logging.getLogger("hotel_rates.api")

auth_dependency = ApiKeyAuth.from_env()

app = FastAPI()


@app.exception_handler(ValidationFailure)
async def validation_failure_handler(request: Request, exc: ValidationFailure) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": {"code": exc.code, "message": str(exc)}})


@app.exception_handler(TransportError)
async def transport_error_handler(request: Request, exc: TransportError) -> JSONResponse:
    logger.warning("rates_collaborator_failed operation=%s", exc.operation)
    return JSONResponse(
        status_code=502,
        content={"detail": {"operation": exc.operation, "message": str(exc)}},
    )


def _load_config(hotel_id: str) -> HotelConfig:
    record = hotels_repo.get_latest(hotel_id)
    if not record:
        raise HTTPException(status_code=404, detail="Hotel config not found")
    return record.to_config()


def _build_form(hotel_id: str, request: RatePeriodRequest) -> RateFormController:
    config = _load_config(hotel_id)
    form = RateFormController(
        config,
        market_id=request.market_id,
        season_id=request.season_id,
        start_date=request.start_date,
        end_date=request.end_date,
    )
    if request.start_date and request.end_date and not request.season_id:
        form.set_period(request.start_date, request.end_date)
    for entry in request.prices:
        form.set_prices(
            entry.room_type_id,
            entry.meal_plan_id,
            **entry.model_dump(exclude={"room_type_id", "meal_plan_id"}),
        )
    for room_type_id, restrictions in request.restrictions.items():
        form.restrictions[room_type_id] = restrictions
    if request.propagate:
        form.on_base_cell_changed()
    return form


def _bulk_response(outcome: BulkEditOutcome) -> BulkEditResponse:
    return BulkEditResponse(
        status=outcome.status,
        total_updates=outcome.total_updates,
        writes_attempted=outcome.writes_attempted,
        error_count=outcome.error_count,
        first_error=outcome.first_error,
    )


@app.get("/v1/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.put("/v1/hotels/{hotel_id}/config", dependencies=[Depends(auth_dependency)])
async def put_hotel_config(hotel_id: str, config: HotelConfig) -> dict[str, str]:
    if hotel_id != config.hotel_id:
        raise HTTPException(status_code=400, detail="hotel_id mismatch")
    if config.schema_version not in SUPPORTED_SCHEMA_VERSIONS:
        raise HTTPException(status_code=400, detail="Unsupported schema_version")
    existing = hotels_repo.get_latest(hotel_id)
    next_version = existing.config_version + 1 if existing else 1
    record = HotelConfigRecord(
        hotel_id=hotel_id,
        config_version=next_version,
        config_json=config.model_dump_json(by_alias=True),
    )
    hotels_repo.put(record)
    return {"hotel_id": hotel_id, "config_version": str(record.config_version)}


@app.get("/v1/hotels/{hotel_id}/config", dependencies=[Depends(auth_dependency)])
async def get_hotel_config(hotel_id: str) -> HotelConfig:
    return _load_config(hotel_id)


@app.post("/v1/hotels/{hotel_id}/rates/preview", dependencies=[Depends(auth_dependency)])
async def preview_rates(hotel_id: str, request: RatePeriodRequest) -> RatePeriodResponse:
    form = _build_form(hotel_id, request)
    records = form.build_records()
    return RatePeriodResponse(hotel_id=hotel_id, records=[record.to_payload() for record in records])


@app.post("/v1/hotels/{hotel_id}/rates/period", dependencies=[Depends(auth_dependency)])
async def save_rate_period(hotel_id: str, request: RatePeriodRequest) -> RatePeriodResponse:
    form = _build_form(hotel_id, request)
    records = form.build_records()
    results = form.submit(rates_client, metrics=metrics)
    return RatePeriodResponse(
        hotel_id=hotel_id,
        records=[record.to_payload() for record in records],
        results=results,
    )


@app.patch("/v1/hotels/{hotel_id}/rates/by-dates", dependencies=[Depends(auth_dependency)])
async def bulk_update_rates(hotel_id: str, request: BulkEditRequest) -> BulkEditResponse:
    config = _load_config(hotel_id)
    market = config.market(request.market_id)
    if market is None:
        raise HTTPException(status_code=400, detail="Unknown market")
    season = config.season(request.season_id)

    edit: Optional[InventoryEdit | RestrictionEdit] = None
    if request.inventory is not None:
        inventory = InventoryEdit(**request.inventory.model_dump())
        edit = inventory if has_inventory_changes(inventory) else None
    elif request.restrictions is not None:
        restrictions = RestrictionEdit(**request.restrictions.model_dump())
        edit = restrictions if has_restriction_changes(restrictions) else None
    if edit is not None:
        outcome = apply_cell_edit(rates_client, hotel_id, request.cells, edit, market.id, metrics=metrics)
        return _bulk_response(outcome)
    if request.inventory is not None or request.restrictions is not None:
        return _bulk_response(BulkEditOutcome(status=STATUS_NOTHING_TO_APPLY))

    buffer = new_bulk_buffer(config, market, season)
    for price in request.prices:
        entry = buffer.cell(price.room_type_id, price.meal_plan_id)
        entry.price_per_night = price.price_per_night
        entry.extra_adult = price.extra_adult
        entry.extra_infant = price.extra_infant
        entry.single_supplement = price.single_supplement
        if price.child_order_pricing:
            entry.child_order_pricing = list(price.child_order_pricing)
        entry.occupancy_pricing.update(price.occupancy_pricing)
    outcome = apply_bulk_price_edit(
        rates_client, config, buffer, request.cells, market, season, metrics=metrics
    )
    return _bulk_response(outcome)


@app.get("/v1/hotels/{hotel_id}/rates/next-period", dependencies=[Depends(auth_dependency)])
async def next_rate_period(hotel_id: str, market_id: Optional[str] = None) -> NextPeriodResponse:
    config = _load_config(hotel_id)
    form = RateFormController(config, market_id=market_id)
    period = form.suggest_period(rates_client)
    return NextPeriodResponse(
        start_date=period.start,
        end_date=period.end,
        source=period.source,
        nights=nights_between(period.start, period.end),
    )
