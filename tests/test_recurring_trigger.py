"""Tests for the recurring processing cron job."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from finhome.jobs import recurring_trigger
from finhome.jobs.recurring_trigger import process_recurring_transactions


def _session_returning(payload=None, error=None):
    session = MagicMock()
    response = MagicMock()
    if error is not None:
        response.raise_for_status.side_effect = error
    response.json.return_value = payload
    session.post.return_value = response
    return session


class TestProcessRecurringTransactions:
    """Test exit codes derived from the processor response."""

    def test_success_exits_zero(self):
        session = _session_returning(
            {
                "success": True,
                "processedCount": 5,
                "errorCount": 0,
                "processedTransactions": [
                    {
                        "recurringTransactionName": "Rent",
                        "amount": "5000000.00",
                        "transactionType": "expense",
                        "isCompleted": False,
                    }
                ],
                "errors": [],
                "processedAt": "2024-05-01T01:00:00",
            }
        )

        assert process_recurring_transactions("https://finhome.test/", "secret", session=session) == 0

        args, kwargs = session.post.call_args
        assert args[0] == "https://finhome.test/api/recurring/process"
        assert kwargs["headers"]["Authorization"] == "Bearer secret"
        assert kwargs["timeout"] == recurring_trigger.settings.recurring_processor_timeout

    def test_item_errors_exit_one(self):
        session = _session_returning(
            {
                "success": True,
                "processedCount": 3,
                "errorCount": 2,
                "processedTransactions": [],
                "errors": [
                    {"recurringTransactionName": "Gym", "error": "Wallet not found"},
                    {"recurringTransactionName": "Netflix", "error": "Invalid expense category"},
                ],
            }
        )

        assert process_recurring_transactions("https://finhome.test", "secret", session=session) == 1

    def test_http_error_exits_one(self):
        session = _session_returning(error=requests.HTTPError("401 Client Error"))
        assert process_recurring_transactions("https://finhome.test", "secret", session=session) == 1

    def test_connection_error_exits_one(self):
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError("connection refused")
        assert process_recurring_transactions("https://finhome.test", "secret", session=session) == 1

    def test_malformed_response_exits_one(self):
        session = _session_returning({"unexpected": True})
        assert process_recurring_transactions("https://finhome.test", "secret", session=session) == 1


class TestMain:
    def test_missing_key_exits_one(self, monkeypatch):
        monkeypatch.setattr(recurring_trigger.settings, "recurring_processor_api_key", None)
        with pytest.raises(SystemExit) as exc_info:
            recurring_trigger.main()
        assert exc_info.value.code == 1

    def test_runs_against_app_url(self, monkeypatch):
        monkeypatch.setattr(recurring_trigger.settings, "recurring_processor_api_key", "secret")
        monkeypatch.setattr(recurring_trigger.settings, "app_url", "https://finhome.test")

        with patch.object(recurring_trigger, "process_recurring_transactions", return_value=0) as run:
            with pytest.raises(SystemExit) as exc_info:
                recurring_trigger.main()

        run.assert_called_once_with("https://finhome.test", "secret")
        assert exc_info.value.code == 0
