"""
Enumerations shared by the pipeline, the failure taxonomy and the classifier.
"""

from enum import Enum


class FailureKind(str, Enum):
    """
    Closed taxonomy of run failures.
    
    Every exception raised out of ``Pipeline.run`` maps to exactly one kind.
    Only GENERATION, POST_CHECK and STRUCTURAL are retryable.
    """
    
    PRE_CHECK = "pre_check"
    GENERATION = "generation"
    POST_CHECK = "post_check"
    STRUCTURAL = "structural"
    RETRIES_EXHAUSTED = "retries_exhausted"
    DEADLINE_EXCEEDED = "deadline_exceeded"
    CANCELLED = "cancelled"
    INVALID_CONFIGURATION = "invalid_configuration"
    UNKNOWN = "unknown"


class PipelinePhase(str, Enum):
    """
    Phases of a single run, in execution order.
    
    PRE_CHECKS runs once; GENERATE, POST_CHECKS and DECODE repeat per attempt.
    """
    
    PRE_CHECKS = "pre_checks"
    GENERATE = "generate"
    POST_CHECKS = "post_checks"
    DECODE = "decode"
