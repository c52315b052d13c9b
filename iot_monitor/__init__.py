"""Telemetry polling and alert deduplication for an IoT sensor gateway."""
