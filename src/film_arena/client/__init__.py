from .client import ArenaClient, HttpArenaClient, LocalArenaClient, create_client

__all__ = ["ArenaClient", "HttpArenaClient", "LocalArenaClient", "create_client"]
