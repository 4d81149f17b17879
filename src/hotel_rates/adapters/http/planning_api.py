"""Rates collaborator backed by the planning REST API."""

from __future__ import annotations

import datetime as dt
import json
import os
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

import requests

from hotel_rates.app.models.rates import BulkUpdateResult, RateRecord, SelectedCell
from hotel_rates.util.errors import TransportError
from hotel_rates.util.logging import get_logger, log_event

logger = get_logger(__name__)

HTTP_TIMEOUT = int(os.environ.get("PLANNING_API_TIMEOUT", "30"))


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat()
    raise TypeError(f"not JSON serializable: {type(value).__name__}")


class PlanningApiClient:
    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: int = HTTP_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    @classmethod
    def from_env(cls) -> "PlanningApiClient":
        return cls(os.environ["PLANNING_API_URL"], token=os.environ.get("PLANNING_API_TOKEN") or None)

    def _rates_url(self, hotel_id: str, suffix: str = "") -> str:
        return f"{self.base_url}/planning/hotels/{hotel_id}/rates{suffix}"

    def _request(
        self,
        operation: str,
        method: str,
        url: str,
        *,
        body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        data = json.dumps(body, default=_json_default) if body is not None else None
        try:
            response = self.session.request(
                method, url, data=data, params=params, headers=headers, timeout=self.timeout
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            status_code = exc.response.status_code if exc.response is not None else None
            log_event(logger, "planning_api_failed", operation=operation, url=url, status_code=status_code)
            raise TransportError(operation, str(exc), status_code=status_code) from exc
        except requests.RequestException as exc:
            log_event(logger, "planning_api_failed", operation=operation, url=url, error=str(exc))
            raise TransportError(operation, str(exc)) from exc
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            log_event(logger, "planning_api_bad_body", operation=operation, url=url, error=str(exc))
            raise TransportError(operation, f"invalid JSON body: {exc}", status_code=response.status_code) from exc

    def create_rate(self, hotel_id: str, record: RateRecord) -> dict:
        body = self._request("create_rate", "POST", self._rates_url(hotel_id), body=record.to_payload())
        return body.get("data", body) if isinstance(body, dict) else {}

    def get_rates(self, hotel_id: str, market: Optional[str] = None) -> List[dict]:
        params = {"market": market} if market else None
        body = self._request("get_rates", "GET", self._rates_url(hotel_id), params=params)
        data = body.get("data", []) if isinstance(body, dict) else body
        if isinstance(data, dict):
            data = data.get("rates", [])
        return list(data or [])

    def bulk_update_by_dates(
        self,
        hotel_id: str,
        cells: Sequence[SelectedCell],
        fields: Dict[str, Any],
        market_id: Optional[str],
    ) -> BulkUpdateResult:
        body = {
            "cells": [cell.model_dump(by_alias=True) for cell in cells],
            "updateFields": fields,
            "marketId": market_id,
        }
        response = self._request(
            "bulk_update_by_dates", "PATCH", self._rates_url(hotel_id, "/by-dates"), body=body
        )
        data = response.get("data", {}) if isinstance(response, dict) else {}
        return BulkUpdateResult(
            created=data.get("created", 0),
            updated=data.get("updated", 0),
            split=data.get("split", 0),
        )
