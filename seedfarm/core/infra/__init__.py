"""Infrastructure services: Redis state store access and the leaderboard database."""
