"""Counter store exports."""

from coverplane.counters.store import CounterStore, load_counters

__all__ = ["CounterStore", "load_counters"]
