from production_tracker.models.entry import ProductionEntry
from production_tracker.models.reference import Crew, WorkType
from production_tracker.models.user import User

__all__ = ["ProductionEntry", "Crew", "WorkType", "User"]
