"""Extensions composed on top of the request core."""

from .load_more import LoadMore, PageContext, create_load_more

__all__ = ["LoadMore", "PageContext", "create_load_more"]
