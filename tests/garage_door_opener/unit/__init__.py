"""Unit tests for the Garage door opener integration."""
