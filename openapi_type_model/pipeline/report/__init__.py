from .renderer import ReportRenderer

__all__ = ["ReportRenderer"]
