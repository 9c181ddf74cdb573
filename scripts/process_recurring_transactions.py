"""Process due recurring transactions through the running API.

Usage:
    APP_URL=https://finhome.example.com RECURRING_PROCESSOR_API_KEY=... \
        python scripts/process_recurring_transactions.py
"""

from finhome.jobs.recurring_trigger import main

if __name__ == "__main__":
    main()
