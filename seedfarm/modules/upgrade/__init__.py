from seedfarm.modules.upgrade.catalog import UpgradeCatalog, upgrade_from_mapping
from seedfarm.modules.upgrade.validator import PurchaseReceipt, PurchaseValidator, UpgradeStatus

__all__ = [
    "PurchaseReceipt",
    "PurchaseValidator",
    "UpgradeCatalog",
    "UpgradeStatus",
    "upgrade_from_mapping",
]
