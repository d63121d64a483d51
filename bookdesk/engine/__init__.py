from bookdesk.engine.bulk import BulkMutationPlanner, BulkPlan, compose_patch
from bookdesk.engine.capacity import CapacityAccountant, CapacitySnapshot, compute_capacity
from bookdesk.engine.directives import Directive, DirectiveKind, DirectiveSet, StaffMode, directive
from bookdesk.engine.filters import FilterKind, FilterSet
from bookdesk.engine.guards import GuardResult, SubmitGuardPipeline
from bookdesk.engine.payment import PaymentStateError, PaymentStateMachine
from bookdesk.engine.pricing import PricingResolver, ResolvedRate
from bookdesk.engine.totals import LineItem, Totals, compute_totals

__all__ = [
    "PricingResolver",
    "ResolvedRate",
    "CapacityAccountant",
    "CapacitySnapshot",
    "compute_capacity",
    "LineItem",
    "Totals",
    "compute_totals",
    "PaymentStateMachine",
    "PaymentStateError",
    "FilterKind",
    "FilterSet",
    "Directive",
    "DirectiveKind",
    "DirectiveSet",
    "StaffMode",
    "directive",
    "BulkMutationPlanner",
    "BulkPlan",
    "compose_patch",
    "GuardResult",
    "SubmitGuardPipeline",
]
