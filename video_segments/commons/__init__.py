"""Commons package - settings, telemetry and transport clients."""
