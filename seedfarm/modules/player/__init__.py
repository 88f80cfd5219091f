from seedfarm.modules.player.store import LoadResult, PlayerStateStore

__all__ = ["LoadResult", "PlayerStateStore"]
