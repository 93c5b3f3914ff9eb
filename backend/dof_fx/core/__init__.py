"""Cross-cutting helpers: calendar, logging and telemetry."""
