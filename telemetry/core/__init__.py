"""Core of the telemetry facade: models, protocols, dispatch service."""
