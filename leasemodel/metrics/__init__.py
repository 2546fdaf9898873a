"""Contract-level summary metrics reduced from the period sequence."""
