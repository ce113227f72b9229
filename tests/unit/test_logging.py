import logging
from unittest.mock import MagicMock, patch

from order_watch.infrastructure.observability.logging import (
    NOISY_LOGGERS,
    log_tick_summary,
    setup_logging,
)


@patch("order_watch.infrastructure.observability.logging.logging.basicConfig")
def test_setup_logging_quiets_http_client_loggers(mock_basic_config):
    setup_logging("debug")

    assert mock_basic_config.call_args.kwargs["level"] == logging.DEBUG
    for name in NOISY_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING


@patch("order_watch.infrastructure.observability.logging.get_logger")
def test_clean_tick_summary_logs_info(mock_get_logger):
    mock_logger = MagicMock()
    mock_get_logger.return_value = mock_logger

    log_tick_summary({"tick": 3, "errored": False})

    mock_logger.info.assert_called_once_with(
        "Poll tick completed", tick=3, errored=False, job_run="poll_tick"
    )
    mock_logger.warning.assert_not_called()


@patch("order_watch.infrastructure.observability.logging.get_logger")
def test_errored_tick_summary_logs_warning(mock_get_logger):
    mock_logger = MagicMock()
    mock_get_logger.return_value = mock_logger

    log_tick_summary({"tick": 4, "errored": True, "fetch_errors": 2})

    mock_logger.warning.assert_called_once_with(
        "Poll tick completed with errors",
        tick=4,
        errored=True,
        fetch_errors=2,
        job_run="poll_tick",
    )
    mock_logger.info.assert_not_called()
