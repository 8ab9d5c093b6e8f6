"""Property lifecycle: Sell and Reopen transitions."""

from estate_ledger.lifecycle.coordinator import PropertyLifecycleCoordinator, TransitionResult

__all__ = ["PropertyLifecycleCoordinator", "TransitionResult"]
