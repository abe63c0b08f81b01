"""Stable runner API surface."""

from pb_runner.engine.invoker import ProcessOutcome, SolverInvoker
from pb_runner.engine.parser import build_run_result, parse_output
from pb_runner.engine.reconcile import classify_objective, reconcile, summarize
from pb_runner.engine.runner import BatchRunner
from pb_runner.engine.stop_token import StopToken
from pb_runner.generator import generate_problem
from pb_runner.loader import CaseLoader, LoadReport, read_baseline
from pb_runner.models.case import SolverArtifactRef, TestCase
from pb_runner.models.config import DEFAULT_LAUNCHER, HarnessConfig
from pb_runner.models.events import CaseEvent
from pb_runner.models.problem import Problem, Rectangle, Variant
from pb_runner.models.results import (
    BatchSummary,
    Classification,
    ObjectiveSense,
    ReconciliationRecord,
    RunResult,
    RunStatus,
)
from pb_runner.models.solution import Evaluation, Placement, Solution
from pb_runner.services.ledger import LEDGER_COLUMNS, LedgerWriter, check_writable

__all__ = [
    "BatchRunner",
    "BatchSummary",
    "CaseEvent",
    "CaseLoader",
    "Classification",
    "DEFAULT_LAUNCHER",
    "Evaluation",
    "HarnessConfig",
    "LEDGER_COLUMNS",
    "LedgerWriter",
    "LoadReport",
    "ObjectiveSense",
    "Placement",
    "Problem",
    "ProcessOutcome",
    "Rectangle",
    "ReconciliationRecord",
    "RunResult",
    "RunStatus",
    "Solution",
    "SolverArtifactRef",
    "SolverInvoker",
    "StopToken",
    "TestCase",
    "Variant",
    "build_run_result",
    "check_writable",
    "classify_objective",
    "generate_problem",
    "parse_output",
    "read_baseline",
    "reconcile",
    "summarize",
]
