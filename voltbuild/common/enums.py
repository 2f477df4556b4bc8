import enum


class UserRole(str, enum.Enum):
    OWNER = "owner"
    ENGINEER = "engineer"
    CONTRACTOR = "contractor"
    ADMIN = "admin"


class ProjectStatus(str, enum.Enum):
    PLANNING = "planning"
    IN_PROGRESS = "in_progress"
    DELAYED = "delayed"
    COMPLETE = "complete"


class CoolingType(str, enum.Enum):
    AIR = "air"
    HYDRO = "hydro"
    IMMERSION = "immersion"


class PhaseStatus(str, enum.Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    COMPLETE = "complete"


class TaskStatus(str, enum.Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    COMPLETE = "complete"


class AssignedRole(str, enum.Enum):
    OWNER = "owner"
    ENGINEER = "engineer"
    CONTRACTOR = "contractor"
    UTILITY = "utility"


class RiskSeverity(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RiskStatus(str, enum.Enum):
    OPEN = "open"
    MITIGATED = "mitigated"
    CLOSED = "closed"


class DriverImpact(str, enum.Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class ActionPriority(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class HealthLabel(str, enum.Enum):
    ON_TRACK = "On Track"
    AT_RISK = "At Risk"
    DELAYED = "Delayed"


class PunchPriority(str, enum.Enum):
    A = "A"
    B = "B"
    C = "C"


class PunchStatus(str, enum.Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
    VERIFIED = "verified"


class RFIStatus(str, enum.Enum):
    OPEN = "open"
    ANSWERED = "answered"
    CLOSED = "closed"


class RFIPriority(str, enum.Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class Discipline(str, enum.Enum):
    CIVIL = "civil"
    ELECTRICAL = "electrical"
    MECHANICAL = "mechanical"
    STRUCTURAL = "structural"
    GENERAL = "general"


class ShiftType(str, enum.Enum):
    DAY = "day"
    NIGHT = "night"


class SubcontractorStatus(str, enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    SUSPENDED = "suspended"


class IncidentSeverity(str, enum.Enum):
    NEAR_MISS = "near_miss"
    FIRST_AID = "first_aid"
    RECORDABLE = "recordable"
    LOST_TIME = "lost_time"


class IncidentStatus(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


class SafetyPermitStatus(str, enum.Enum):
    REQUESTED = "requested"
    ACTIVE = "active"
    CLOSED = "closed"
    EXPIRED = "expired"


class UtilityMilestoneStatus(str, enum.Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
    DELAYED = "delayed"


class AlertSeverity(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ReportType(str, enum.Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class ChangeOrderStatus(str, enum.Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    IMPLEMENTED = "implemented"


class ProcurementCategory(str, enum.Enum):
    TRANSFORMERS = "transformers"
    SWITCHGEAR = "switchgear"
    PDU = "pdu"
    CONTAINERS = "containers"
    HVAC = "hvac"
    FIBER = "fiber"
    OTHER = "other"


class ProcurementStatus(str, enum.Enum):
    PLANNED = "planned"
    ORDERED = "ordered"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    DELAYED = "delayed"


class PurchaseOrderStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    PAID = "paid"
    CLOSED = "closed"


class VendorTrade(str, enum.Enum):
    CIVIL = "civil"
    ELECTRICAL = "electrical"
    MECHANICAL = "mechanical"
    IT = "it"
    COMMISSIONING = "commissioning"
    OTHER = "other"


class BidRequestStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    CLOSED = "closed"
    AWARDED = "awarded"


class BidStatus(str, enum.Enum):
    SUBMITTED = "submitted"
    SHORTLISTED = "shortlisted"
    REJECTED = "rejected"
    AWARDED = "awarded"


class CommissioningStatus(str, enum.Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


class GateStatus(str, enum.Enum):
    BLOCKED = "blocked"
    READY = "ready"


class VerificationType(str, enum.Enum):
    PHOTO = "photo"
    VIDEO = "video"
    DOCUMENT = "document"
    INSPECTION = "inspection"


class VerificationStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
