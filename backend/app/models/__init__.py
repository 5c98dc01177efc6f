from app.models.activity_log import ActivityLog  # noqa: F401
from app.models.client import Client  # noqa: F401
from app.models.mc import Mc  # noqa: F401
from app.models.platform import Platform  # noqa: F401
from app.models.schedule import Schedule, ScheduleStatus  # noqa: F401
from app.models.schedule_snapshot import ScheduleSnapshot, SnapshotReason  # noqa: F401
from app.models.show import Show  # noqa: F401
from app.models.show_assignment import ShowMc, ShowPlatform  # noqa: F401
from app.models.show_reference import ShowStandard, ShowStatus, ShowType  # noqa: F401
from app.models.studio_room import StudioRoom, StudioRoomType  # noqa: F401
from app.models.user import User  # noqa: F401
