"""Dispatcher, rule plumbing, configuration and the analysis engine."""
