from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterable, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from hotel_rates.util.logging import get_logger, log_event


@dataclass(frozen=True)
class MetricDimension:
    name: str
    value: str


class CloudWatchMetrics:
    def __init__(self, *, namespace: str, enabled: bool) -> None:
        self.namespace = namespace
        self.enabled = enabled
        self.client = boto3.client("cloudwatch") if enabled else None
        self.logger = get_logger(self.__class__.__name__)

    @classmethod
    def from_env(cls) -> "CloudWatchMetrics":
        enabled = os.getenv("CLOUDWATCH_METRICS_ENABLED", "false").lower() == "true"
        namespace = os.getenv("CLOUDWATCH_METRICS_NAMESPACE", "HotelRates")
        return cls(namespace=namespace, enabled=enabled)

    def _put_metric(
        self,
        *,
        name: str,
        value: float,
        unit: str = "Count",
        dimensions: Optional[Iterable[MetricDimension]] = None,
    ) -> None:
        if not self.enabled or not self.client:
            return
        payload = {
            "MetricName": name,
            "Value": value,
            "Unit": unit,
        }
        if dimensions:
            payload["Dimensions"] = [
                {"Name": dimension.name, "Value": dimension.value} for dimension in dimensions
            ]
        try:
            self.client.put_metric_data(
                Namespace=self.namespace,
                MetricData=[payload],
            )
        except (BotoCoreError, ClientError) as exc:
            log_event(self.logger, "cloudwatch_metric_failed", error=str(exc), metric=name)

    def record_rates_written(self, *, hotel_id: str, count: int) -> None:
        self._put_metric(
            name="RatesWritten",
            value=float(count),
            dimensions=[MetricDimension(name="hotel_id", value=hotel_id)],
        )

    def record_write_failures(self, *, hotel_id: str, operation: str, failures: int) -> None:
        self._put_metric(
            name="RateWriteFailed",
            value=float(failures),
            dimensions=[MetricDimension(name="hotel_id", value=hotel_id)],
        )
        self._put_metric(
            name="RateWriteFailed",
            value=float(failures),
            dimensions=[MetricDimension(name="operation", value=operation)],
        )
        self._put_metric(name="RateWriteFailed", value=float(failures))
