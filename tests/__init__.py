"""Tests for latprobe."""
