from app.economy.achievements.service import AchievementService
from app.economy.energy.service import EnergyService

__all__ = [
    "AchievementService",
    "EnergyService",
]
