"""Data models shared by connectors, coordination engines and exporters."""
