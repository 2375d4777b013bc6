"""Mandi marketplace notification and market-event dispatch engine."""
