from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import Sum

from courses.models import CourseInstance

logger = logging.getLogger(__name__)


class CourseFullError(Exception):
    """Raised when a booking would push a course past its capacity."""

    def __init__(self, course: CourseInstance, requested: int):
        self.course = course
        self.requested = requested
        super().__init__(
            f"Only {course.available_spots} spots left on {course.title}, {requested} requested."
        )


def reserve_spots(course_id: int, participants: int, *, enforce_capacity: bool = True) -> CourseInstance:
    """Lock the course row and add participants to its running count."""

    with transaction.atomic():
        course = CourseInstance.objects.select_for_update().get(pk=course_id)
        if enforce_capacity and not course.has_room_for(participants):
            raise CourseFullError(course, participants)
        course.current_participants += participants
        course.save(update_fields=["current_participants", "updated_at"])

    logger.info(
        "Reserved %s spots on course %s (%s/%s)",
        participants,
        course.pk,
        course.current_participants,
        course.max_participants,
    )
    return course


def release_spots(course_id: int, participants: int) -> CourseInstance:
    """Give spots back; the count never drops below zero."""

    with transaction.atomic():
        course = CourseInstance.objects.select_for_update().get(pk=course_id)
        course.current_participants = max(course.current_participants - participants, 0)
        course.save(update_fields=["current_participants", "updated_at"])

    logger.info("Released %s spots on course %s", participants, course.pk)
    return course


def recalculate_participants(course: CourseInstance) -> int:
    from bookings.models import Booking

    total = (
        Booking.objects.filter(course=course)
        .exclude(status=Booking.CANCELLED)
        .aggregate(total=Sum("number_of_participants"))["total"]
        or 0
    )
    if course.current_participants != total:
        logger.warning(
            "Participant count drift on course %s: stored %s, bookings %s",
            course.pk,
            course.current_participants,
            total,
        )
        course.current_participants = total
        course.save(update_fields=["current_participants", "updated_at"])
    return total
