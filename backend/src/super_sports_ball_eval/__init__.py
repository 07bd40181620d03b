"""Evaluation scenarios for the Super Sports Ball chat assistant."""
