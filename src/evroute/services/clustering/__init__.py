"""Map clustering of chargers."""
