from heart_agent.evaluation.evaluator import Evaluation, ModelEvaluator
from heart_agent.evaluation.reporter import Reporter

__all__ = ["Evaluation", "ModelEvaluator", "Reporter"]
