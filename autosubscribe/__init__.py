"""Operator command line for log group auto-subscription."""
