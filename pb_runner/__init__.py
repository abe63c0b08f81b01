"""Runner facade: load cases, run the solver, reconcile and record."""

from pb_runner.api import BatchRunner, CaseLoader, HarnessConfig, StopToken

__all__ = ["BatchRunner", "CaseLoader", "HarnessConfig", "StopToken"]
