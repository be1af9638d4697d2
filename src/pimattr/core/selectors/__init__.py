from .paginated import LIST_CHANNEL, PaginatedAttributeSelector

__all__ = ["PaginatedAttributeSelector", "LIST_CHANNEL"]
