"""Tests for the Pouch Tracker integration."""
