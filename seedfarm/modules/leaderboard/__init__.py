"""Leaderboard model and service. Import the service from its module."""
