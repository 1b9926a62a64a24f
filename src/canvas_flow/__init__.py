"""Instruction plan execution and duration-driven video flows for a generative-media canvas."""

from canvas_flow.config import Settings, configure_logging, get_settings
from canvas_flow.engine import ExecutionEnvironment, ExecutionReport, PlanExecutor, execute_plan
from canvas_flow.plan import InstructionPlan

__version__ = "0.1.0"

__all__ = [
    "ExecutionEnvironment",
    "ExecutionReport",
    "InstructionPlan",
    "PlanExecutor",
    "Settings",
    "configure_logging",
    "execute_plan",
    "get_settings",
]
