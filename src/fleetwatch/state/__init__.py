"""State/store layer.

The entity store is the single in-memory source of truth for trucks,
drivers and trips. Both the consistency evaluator and the alert engine
read from the same injected store instance.
"""
