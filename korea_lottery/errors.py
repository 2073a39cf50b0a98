"""Error taxonomy for draw validation and analysis."""


class LotteryAnalysisError(Exception):
    """Base class for all analysis errors."""


class InsufficientHistory(LotteryAnalysisError):
    """Fewer draws than an analysis needs."""

    def __init__(self, required: int, actual: int):
        self.required = required
        self.actual = actual
        super().__init__(
            f"Not enough draw history: need at least {required} draws, got {actual}"
        )


class InvalidDrawRecord(LotteryAnalysisError, ValueError):
    """A draw record violates its game's domain invariants."""


class RuleEvaluationFailure(LotteryAnalysisError):
    """A heuristic rule could not produce a valid candidate set."""

    def __init__(self, rule: str, reason: str):
        self.rule = rule
        self.reason = reason
        super().__init__(f"{rule}: {reason}")


class ConstraintUnsatisfiable(LotteryAnalysisError):
    """A constrained set construction could not reach six values."""
