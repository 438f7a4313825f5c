from heart_agent.models.selector import (
    CandidateScore,
    FittedModel,
    ModelSelector,
    SelectionResult,
    one_se_select,
)

__all__ = [
    "CandidateScore",
    "FittedModel",
    "ModelSelector",
    "SelectionResult",
    "one_se_select",
]
