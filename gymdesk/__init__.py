"""gymdesk - Gym administration backend with a health-checked Supabase store."""

__version__ = "0.1.0"
__author__ = "gymdesk contributors"
__description__ = "Gym membership administration core with store connection monitoring"

__all__ = ["__version__"]
