from gymhub.models.availability import LessonAvailability
from gymhub.models.booking import LessonBooking
from gymhub.models.channel import Channel
from gymhub.models.lessons import CoachLessonProfile, LessonPackage
from gymhub.models.slot import LessonSlot

__all__ = [
    "Channel",
    "CoachLessonProfile",
    "LessonAvailability",
    "LessonBooking",
    "LessonPackage",
    "LessonSlot",
]
