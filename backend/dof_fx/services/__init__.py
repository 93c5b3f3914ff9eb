"""Domain services: resolution, reconciliation and FX analytics."""
