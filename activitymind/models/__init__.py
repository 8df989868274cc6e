from activitymind.models.activity import Activity
from activitymind.models.base import Base
from activitymind.models.favorite import Favorite
from activitymind.models.generation_log import GenerationLog
from activitymind.models.history import ActivityHistory

__all__ = ["Base", "Activity", "ActivityHistory", "Favorite", "GenerationLog"]
