from fastapi import APIRouter

from voltbuild.api.v1.advisor import router as advisor_router
from voltbuild.api.v1.auth import router as auth_router
from voltbuild.api.v1.bids import router as bids_router
from voltbuild.api.v1.change_orders import router as change_orders_router
from voltbuild.api.v1.commissioning import router as commissioning_router
from voltbuild.api.v1.dashboard import router as dashboard_router
from voltbuild.api.v1.documents import router as documents_router
from voltbuild.api.v1.field import router as field_router
from voltbuild.api.v1.forecasts import router as forecasts_router
from voltbuild.api.v1.phases import router as phases_router
from voltbuild.api.v1.procurement import router as procurement_router
from voltbuild.api.v1.projects import router as projects_router
from voltbuild.api.v1.punch_list import router as punch_list_router
from voltbuild.api.v1.rates import router as rates_router
from voltbuild.api.v1.reports import router as reports_router
from voltbuild.api.v1.rfis import router as rfis_router
from voltbuild.api.v1.risks import router as risks_router
from voltbuild.api.v1.safety import router as safety_router
from voltbuild.api.v1.site_selection import router as site_selection_router
from voltbuild.api.v1.subcontractors import router as subcontractors_router
from voltbuild.api.v1.tasks import router as tasks_router
from voltbuild.api.v1.timeline import router as timeline_router
from voltbuild.api.v1.utility import router as utility_router
from voltbuild.api.v1.vendors import router as vendors_router
from voltbuild.api.v1.verifications import router as verifications_router

v1_router = APIRouter()

v1_router.include_router(auth_router)
v1_router.include_router(projects_router)
v1_router.include_router(phases_router)
v1_router.include_router(tasks_router)
v1_router.include_router(documents_router)
v1_router.include_router(risks_router)
v1_router.include_router(forecasts_router)
v1_router.include_router(advisor_router)
v1_router.include_router(timeline_router)
v1_router.include_router(dashboard_router)
v1_router.include_router(reports_router)
v1_router.include_router(field_router)
v1_router.include_router(punch_list_router)
v1_router.include_router(rfis_router)
v1_router.include_router(change_orders_router)
v1_router.include_router(procurement_router)
v1_router.include_router(vendors_router)
v1_router.include_router(bids_router)
v1_router.include_router(commissioning_router)
v1_router.include_router(verifications_router)
v1_router.include_router(subcontractors_router)
v1_router.include_router(safety_router)
v1_router.include_router(utility_router)
v1_router.include_router(site_selection_router)
v1_router.include_router(rates_router)
