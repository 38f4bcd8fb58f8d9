from .chat import ChatTemplates, format_amount
from .email import EmailTemplates

__all__ = ["ChatTemplates", "EmailTemplates", "format_amount"]
