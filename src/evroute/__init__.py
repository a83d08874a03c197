"""EV trip planning and charger clustering service."""
