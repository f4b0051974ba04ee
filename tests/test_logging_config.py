import io
import logging
import sys

import structlog

from newsletter.logging_config import configure_logging


def test_configure_logging_only_runs_once():
    # Importing the application already configured logging
    import newsletter.main  # noqa: F401

    assert configure_logging() is False


def test_forced_configuration_writes_structured_records_to_the_given_stream():
    stream = io.StringIO()
    try:
        assert configure_logging(stream=stream, force=True) is True
        structlog.contextvars.bind_contextvars(request_id="req-123")
        structlog.get_logger("newsletter.tests").info("Adding a new subscriber", subscriber_email="u***@gmail.com")
        logging.getLogger("newsletter.tests.stdlib").warning("Plain stdlib record")
    finally:
        structlog.contextvars.clear_contextvars()
        configure_logging(stream=sys.stdout, force=True)

    output = stream.getvalue()
    assert "Adding a new subscriber" in output
    assert "req-123" in output
    assert "u***@gmail.com" in output
    assert "Plain stdlib record" in output
