from .coordinator import (
    ChannelState,
    FetchCoordinator,
    FetchOutcome,
    FetchRequest,
    FetchStatus,
    QueryState,
)

__all__ = [
    "ChannelState",
    "FetchCoordinator",
    "FetchOutcome",
    "FetchRequest",
    "FetchStatus",
    "QueryState",
]
