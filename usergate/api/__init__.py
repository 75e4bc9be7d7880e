from usergate.api.app import create_app
from usergate.api.context import AppContext, get_context

__all__ = ["AppContext", "create_app", "get_context"]
