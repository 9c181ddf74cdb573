"""Cron entry point that asks the API to process due recurring transactions.

Schedule it once a day, for example::

    0 1 * * * finhome-process-recurring

The exit code is 0 only when the run reported no per-item errors.
"""

import sys
from typing import Optional

import requests

from finhome.config import settings
from finhome.logging_config import configure_logging, get_logger

logger = get_logger(__name__)

PROCESS_PATH = "/api/recurring/process"


def process_recurring_transactions(
    api_url: str, api_key: str, session: Optional[requests.Session] = None
) -> int:
    """Trigger one processing run and summarise the outcome.

    Args:
        api_url: Base URL of the API, without a trailing path
        api_key: Value of RECURRING_PROCESSOR_API_KEY
        session: Optional requests session, mainly for tests

    Returns:
        Process exit code: 0 when ``errorCount`` is zero, 1 otherwise
    """
    http = session or requests.Session()
    url = f"{api_url.rstrip('/')}{PROCESS_PATH}"

    logger.info("Triggering recurring transaction processing", url=url)

    try:
        response = http.post(
            url,
            headers={"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"},
            timeout=settings.recurring_processor_timeout,
        )
        response.raise_for_status()
        result = response.json()
        processed_count = int(result["processedCount"])
        error_count = int(result["errorCount"])
    except requests.RequestException as e:
        logger.error("Recurring processing request failed", url=url, error=str(e))
        return 1
    except (ValueError, KeyError, TypeError) as e:
        logger.error("Unexpected response from recurring processor", url=url, error=str(e))
        return 1

    logger.info(
        "Recurring processing finished",
        processed_count=processed_count,
        error_count=error_count,
        processed_at=result.get("processedAt"),
    )

    for item in result.get("processedTransactions") or []:
        logger.info(
            "Recurring transaction processed",
            name=item.get("recurringTransactionName"),
            amount=item.get("amount"),
            transaction_type=item.get("transactionType"),
            completed=item.get("isCompleted"),
        )

    for item in result.get("errors") or []:
        logger.error(
            "Recurring transaction failed",
            name=item.get("recurringTransactionName"),
            error=item.get("error"),
        )

    return 0 if error_count == 0 else 1


def main() -> None:
    """Console script entry point."""
    configure_logging()

    if not settings.recurring_processor_api_key:
        logger.error("RECURRING_PROCESSOR_API_KEY is not set")
        sys.exit(1)

    sys.exit(process_recurring_transactions(settings.app_url, settings.recurring_processor_api_key))


if __name__ == "__main__":
    main()
