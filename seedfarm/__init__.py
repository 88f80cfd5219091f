"""Seed Farm: idle seed accrual, daily streaks and an upgrade economy."""

__version__ = "1.0.0"
