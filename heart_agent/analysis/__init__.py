from heart_agent.analysis.explorer import DataExplorer

__all__ = ["DataExplorer"]
