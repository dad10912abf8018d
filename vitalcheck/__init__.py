"""Vital-sign health status classification, alerting and encrypted history.

This package contains the business logic and domain models, isolated from
the user interface so it can be tested and reasoned about on its own.
"""
