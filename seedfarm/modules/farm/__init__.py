from seedfarm.modules.farm.service import FarmService, FarmSnapshot

__all__ = ["FarmService", "FarmSnapshot"]
