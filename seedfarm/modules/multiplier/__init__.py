from seedfarm.modules.multiplier.resolver import MultiplierBreakdown, MultiplierResolver

__all__ = ["MultiplierBreakdown", "MultiplierResolver"]
