"""Pure financial utilities: loan math, currency handling and budget templates."""
