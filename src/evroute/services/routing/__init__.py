"""Range-constrained trip planning."""
