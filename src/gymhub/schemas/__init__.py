from gymhub.schemas.availability import (
    LessonAvailabilityCreate,
    LessonAvailabilityRead,
    LessonAvailabilityUpdate,
)
from gymhub.schemas.booking import BookingCancel, BookingCreate, BookingRead
from gymhub.schemas.channel import ChannelRead, DirectChannelRequest, DirectChannelResult
from gymhub.schemas.lessons import (
    CoachLessonProfileRead,
    CoachLessonProfileUpsert,
    LessonPackageCreate,
    LessonPackageRead,
    LessonPackageUpdate,
)
from gymhub.schemas.slot import BookableSlot, OneOffSlotCreate, PersistedSlot, VirtualSlot
from gymhub.schemas.system import StatusResponse

__all__ = [
    "BookableSlot",
    "BookingCancel",
    "BookingCreate",
    "BookingRead",
    "ChannelRead",
    "CoachLessonProfileRead",
    "CoachLessonProfileUpsert",
    "DirectChannelRequest",
    "DirectChannelResult",
    "LessonAvailabilityCreate",
    "LessonAvailabilityRead",
    "LessonAvailabilityUpdate",
    "LessonPackageCreate",
    "LessonPackageRead",
    "LessonPackageUpdate",
    "OneOffSlotCreate",
    "PersistedSlot",
    "StatusResponse",
    "VirtualSlot",
]
