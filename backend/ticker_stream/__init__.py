"""Simulated market ticker prices streamed to authenticated WebSocket clients."""
