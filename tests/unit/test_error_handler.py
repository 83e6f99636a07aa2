import logging
from unittest.mock import MagicMock

import httpx

from catalog_adaptor.core.exceptions import MalformedResponse, RateLimited, UpstreamError
from catalog_adaptor.infrastructure.error.handler import ErrorCategory, ErrorHandler, ErrorSeverity


def test_categorizes_known_failures(error_handler):
    assert error_handler.handle_error(RateLimited("ebay", 10), "ebay").category == ErrorCategory.RATE_LIMIT
    assert error_handler.handle_error(MalformedResponse("ebay"), "ebay").category == ErrorCategory.MALFORMED_RESPONSE
    assert error_handler.handle_error(httpx.ConnectError("refused"), "ebay").category == ErrorCategory.CONNECTION

    details = error_handler.handle_error(UpstreamError("ebay", attempts=3, status_code_upstream=503), "ebay", "search")
    assert details.category == ErrorCategory.EXTERNAL_API
    assert details.severity == ErrorSeverity.HIGH
    assert details.http_status_code == 503
    assert details.context["attempts"] == 3


def test_counts_per_source_and_category(error_handler):
    error_handler.handle_error(RateLimited("ebay"), "ebay")
    error_handler.handle_error(RateLimited("ebay"), "ebay")
    error_handler.handle_error(UpstreamError("etsy"), "etsy")

    assert error_handler.failure_count("ebay") == 2
    assert error_handler.failure_count("ebay", ErrorCategory.RATE_LIMIT) == 2
    assert error_handler.failure_count("etsy", ErrorCategory.RATE_LIMIT) == 0

    stats = error_handler.get_stats()
    assert stats["failures"] == {"ebay": {"rate_limit": 2}, "etsy": {"external_api": 1}}
    assert stats["last_error"]["ebay"]["category"] == "rate_limit"

    error_handler.reset()
    assert error_handler.failure_count("ebay") == 0


def test_listeners_receive_every_failure_and_cannot_break_handling(error_handler):
    received = []

    def broken(details):
        raise RuntimeError("listener bug")

    error_handler.add_listener(broken)
    error_handler.add_listener(received.append)
    error_handler.handle_error(UpstreamError("ebay"), "ebay", "category", context={"category": "phones"})

    assert received[0].operation == "category"
    assert received[0].context["category"] == "phones"

    error_handler.remove_listener(received.append)
    error_handler.handle_error(UpstreamError("ebay"), "ebay")
    assert len(received) == 1


def test_unknown_errors_notify(caplog):
    notify = MagicMock()
    handler = ErrorHandler(logging.getLogger("tests.failures"), notify_callback=notify)

    with caplog.at_level(logging.ERROR, logger="tests.failures"):
        details = handler.handle_error(KeyError("price"), "amazon", "search")

    assert details.category == ErrorCategory.UNKNOWN
    assert details.should_notify is True
    notify.assert_called_once_with(details)
    assert any("amazon search failed" in r.getMessage() for r in caplog.records)


def test_log_record_carries_structured_data(error_handler, caplog):
    with caplog.at_level(logging.INFO, logger="tests.failures"):
        error_handler.handle_error(RateLimited("ebay", 5), "ebay", "search")

    record = caplog.records[-1]
    assert record.levelno == logging.INFO
    assert record.data["event"] == "adapter_failure"
    assert record.data["category"] == "rate_limit"
    assert record.data["source"] == "ebay"
