from .customs import process_customs, score_container
from .emergency import handle_emergency, mobilized_teams
from .logistics import plan_loading, plan_transport
from .maintenance import schedule_maintenance
from .outcomes import INVALID_REQUEST, NOT_FOUND, SATURATED, failure, success
from .quay import assign_quay, first_fit_quay
from .stacking import calculate_layout, optimize_stacking, zone_efficiency
from .storage import assign_storage_zone, calculate_position, resolve_target_zone

__all__ = [
    "INVALID_REQUEST",
    "NOT_FOUND",
    "SATURATED",
    "assign_quay",
    "assign_storage_zone",
    "calculate_layout",
    "calculate_position",
    "failure",
    "first_fit_quay",
    "handle_emergency",
    "mobilized_teams",
    "optimize_stacking",
    "plan_loading",
    "plan_transport",
    "process_customs",
    "resolve_target_zone",
    "schedule_maintenance",
    "score_container",
    "success",
    "zone_efficiency",
]
