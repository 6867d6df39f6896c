"""Nightly Garmin sync runner."""
