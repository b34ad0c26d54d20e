"""Tests for Stylus Bundler."""
