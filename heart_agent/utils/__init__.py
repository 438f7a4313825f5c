from heart_agent.utils.logger import get_logger

__all__ = ["get_logger"]
