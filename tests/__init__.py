"""Tests for the MindDigit sync engine."""
