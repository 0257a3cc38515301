import logging

from investment_tracker.utils.logging_redaction import RedactingFilter, redact_message


def test_redacts_query_credentials_and_bearer_tokens():
    message = "GET https://query1.finance.yahoo.com/v7/quote?symbols=TCS.NS&crumb=abc123 Authorization: Bearer xyz.789"
    redacted = redact_message(message)

    assert "abc123" not in redacted
    assert "xyz.789" not in redacted
    assert "symbols=TCS.NS" in redacted


def test_filter_rewrites_record_message():
    record = logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="fetching %s",
        args=("https://api.test/x?apikey=secret",),
        exc_info=None,
    )

    assert RedactingFilter().filter(record)
    assert record.getMessage() == "fetching https://api.test/x?apikey=[REDACTED]"
