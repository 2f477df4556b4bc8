from voltbuild.db.models.bid import Bid, BidRequest, ContractAward, Vendor
from voltbuild.db.models.change_order import ChangeOrder
from voltbuild.db.models.commissioning import CommissioningChecklist, EnergizationGate
from voltbuild.db.models.document import TaskDocument
from voltbuild.db.models.field import DailyLog, FieldCheckin, LaborEntry
from voltbuild.db.models.forecast import ProjectForecast
from voltbuild.db.models.phase import Phase
from voltbuild.db.models.procurement import ProcurementItem, PurchaseOrder
from voltbuild.db.models.project import Project
from voltbuild.db.models.punch import PunchItem
from voltbuild.db.models.report import ProjectReport
from voltbuild.db.models.rfi import RFI
from voltbuild.db.models.risk import Risk
from voltbuild.db.models.safety import SafetyIncident, SafetyPermit, SafetyTalk
from voltbuild.db.models.subcontractor import Subcontractor
from voltbuild.db.models.task import Task, TaskComment
from voltbuild.db.models.user import User
from voltbuild.db.models.utility import UtilityAlert, UtilityStatusUpdate
from voltbuild.db.models.verification import TaskVerification

__all__ = [
    "Bid",
    "BidRequest",
    "ChangeOrder",
    "CommissioningChecklist",
    "ContractAward",
    "DailyLog",
    "EnergizationGate",
    "FieldCheckin",
    "LaborEntry",
    "Phase",
    "ProcurementItem",
    "Project",
    "ProjectForecast",
    "ProjectReport",
    "PunchItem",
    "PurchaseOrder",
    "RFI",
    "Risk",
    "SafetyIncident",
    "SafetyPermit",
    "SafetyTalk",
    "Subcontractor",
    "Task",
    "TaskComment",
    "TaskDocument",
    "TaskVerification",
    "User",
    "UtilityAlert",
    "UtilityStatusUpdate",
    "Vendor",
]
