from seedfarm.modules.accrual.calculator import compute_pending, hours_between, resolve_capacity

__all__ = ["compute_pending", "hours_between", "resolve_capacity"]
