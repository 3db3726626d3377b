import json
import logging
from decimal import Decimal

from storefront.core.logging_config import JsonFormatter, RequestIdFilter, request_id_ctx_var


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("storefront.services.orders", logging.INFO, __file__, 10, "order_placed", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_request_id_and_extras() -> None:
    token = request_id_ctx_var.set("req-123")
    try:
        record = _record(order_number="ORD-1", total=Decimal("86.99"), codes=["A", "B"])
        RequestIdFilter().filter(record)
        payload = json.loads(JsonFormatter().format(record))
    finally:
        request_id_ctx_var.reset(token)

    assert payload["message"] == "order_placed"
    assert payload["level"] == "INFO"
    assert payload["request_id"] == "req-123"
    assert payload["order_number"] == "ORD-1"
    assert payload["total"] == "86.99"
    assert payload["codes"] == ["A", "B"]


def test_request_id_defaults_to_dash() -> None:
    record = _record()
    RequestIdFilter().filter(record)
    assert record.request_id == "-"
