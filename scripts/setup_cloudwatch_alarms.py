from __future__ import annotations

import argparse
from typing import Optional

import boto3


def _alarm_name(prefix: str, name: str, hotel_id: Optional[str]) -> str:
    if hotel_id:
        return f"{prefix}-{hotel_id}-{name}"
    return f"{prefix}-{name}"


def _dimensions(hotel_id: Optional[str]) -> list[dict]:
    if not hotel_id:
        return []
    return [{"Name": "hotel_id", "Value": hotel_id}]


def _alarm_actions(topic_arn: Optional[str]) -> list[str]:
    if not topic_arn:
        return []
    return [topic_arn]


def main() -> None:
    parser = argparse.ArgumentParser(description="Create CloudWatch alarms for hotel rate writes")
    parser.add_argument("--alarm-prefix", default="hotel-rates", help="Alarm name prefix")
    parser.add_argument("--namespace", default="HotelRates", help="CloudWatch namespace for custom metrics")
    parser.add_argument("--sns-topic-arn", help="SNS topic ARN for alarm actions")
    parser.add_argument("--hotel-id", help="Optional hotel ID for per-hotel alarms")
    parser.add_argument(
        "--write-failure-threshold",
        type=int,
        default=5,
        help="Failed rate writes per period before alarming",
    )
    parser.add_argument("--write-failure-period", type=int, default=300, help="Period in seconds")
    parser.add_argument(
        "--write-failure-evaluation-periods",
        type=int,
        default=1,
        help="Evaluation periods for the write failure alarm",
    )
    args = parser.parse_args()

    cloudwatch = boto3.client("cloudwatch")
    alarm_actions = _alarm_actions(args.sns_topic_arn)

    cloudwatch.put_metric_alarm(
        AlarmName=_alarm_name(args.alarm_prefix, "rate-write-failures", args.hotel_id),
        AlarmDescription="Triggers when rate writes to the collaborator keep failing.",
        Namespace=args.namespace,
        MetricName="RateWriteFailed",
        Dimensions=_dimensions(args.hotel_id),
        Statistic="Sum",
        Period=args.write_failure_period,
        EvaluationPeriods=args.write_failure_evaluation_periods,
        DatapointsToAlarm=args.write_failure_evaluation_periods,
        Threshold=args.write_failure_threshold,
        ComparisonOperator="GreaterThanOrEqualToThreshold",
        TreatMissingData="notBreaching",
        AlarmActions=alarm_actions,
        OKActions=alarm_actions,
    )


if __name__ == "__main__":
    main()
