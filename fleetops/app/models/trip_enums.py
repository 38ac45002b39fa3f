"""
Trip-related enumerations.
"""

import enum


class TripStatus(str, enum.Enum):
    """Trip status enumeration."""
    SCHEDULED = "scheduled"  # Booked, not started
    IN_PROGRESS = "in_progress"  # Driver and vehicle on the job
    COMPLETED = "completed"  # Terminal
    CANCELLED = "cancelled"  # Terminal


class ServiceKind(str, enum.Enum):
    """Category of transport; decides which optional trip fields apply."""
    AIRPORT_PICKUP = "airport_pickup"
    AIRPORT_DROPOFF = "airport_dropoff"
    ONE_WAY_TRANSFER = "one_way_transfer"
    ROUND_TRIP = "round_trip"
    FULL_DAY = "full_day"
    SECURITY_ESCORT = "security_escort"
    HOURLY = "hourly"
    MULTI_DAY = "multi_day"
    OTHER = "other"


# Kinds that carry a return/end time
RETURN_TIME_KINDS = frozenset({ServiceKind.ROUND_TRIP, ServiceKind.SECURITY_ESCORT, ServiceKind.FULL_DAY})

# Kinds that carry flight details
AIRPORT_KINDS = frozenset({ServiceKind.AIRPORT_PICKUP, ServiceKind.AIRPORT_DROPOFF})


class AssignmentStatus(str, enum.Enum):
    """Status of a single assignment record (not the trip)."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class RecurrenceFrequency(str, enum.Enum):
    """Repeat rule for recurring bookings."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class ClientType(str, enum.Enum):
    """Client category; passenger manifests only apply to organizations."""
    ORGANIZATION = "organization"
    INDIVIDUAL = "individual"


class MessageSender(str, enum.Enum):
    """Who wrote a trip message."""
    ADMIN = "admin"
    DRIVER = "driver"
    CLIENT = "client"
