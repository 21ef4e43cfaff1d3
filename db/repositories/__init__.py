"""Repository layer — all database access goes through here."""

from db.repositories.credits import CreditsRepository
from db.repositories.individual_resources import IndividualResourcesRepository
from db.repositories.packages import PackagesRepository
from db.repositories.purchases import PurchasesRepository
from db.repositories.resources import ResourcesRepository
from db.repositories.settings import SettingsRepository

__all__ = [
    "CreditsRepository",
    "IndividualResourcesRepository",
    "PackagesRepository",
    "PurchasesRepository",
    "ResourcesRepository",
    "SettingsRepository",
]
