"""
Reasoning Domain - Structured reasoning step graph.

This domain handles:
- Typed reasoning steps linked by dependencies
- Branches of sequential reasoning
- Analysis chains, synthesis and validation over prior steps
"""

from .contracts import IdGenerator, Reasoner
from .engine import ReasoningEngine
from .factory import StepFactory, UUIDGenerator
from .models import (
    ChainResult,
    ReasoningStep,
    ReasoningType,
    StepResult,
    SynthesisResult,
    ValidationResult,
)
from .store import BranchIndex, StepStore

__all__ = [
    # Contracts
    "IdGenerator",
    "Reasoner",
    # Models
    "ReasoningType",
    "ReasoningStep",
    "StepResult",
    "ChainResult",
    "SynthesisResult",
    "ValidationResult",
    # Implementations
    "StepStore",
    "BranchIndex",
    "StepFactory",
    "UUIDGenerator",
    "ReasoningEngine",
]
