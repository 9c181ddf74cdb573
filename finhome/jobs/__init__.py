"""Command-line jobs run outside the API process."""
