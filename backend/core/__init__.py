"""Core logic for indicators, signal decisions, scheduling and fan-out.

This package contains pure business logic with no I/O dependencies
(no database or network access). Storage and delivery are injected by
the service layer (app/).
"""
