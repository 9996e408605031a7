"""Tests for the Garage door opener integration."""
