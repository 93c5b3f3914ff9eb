"""DOF USD/MXN reference-rate resolution, reconciliation and FX analytics."""

__version__ = "0.1.0"
