from .facts import (
    Container,
    FactBase,
    IdSequence,
    Operation,
    Ship,
    compute_stats,
    fact_base_to_dict,
)
from .knowledge import (
    Crane,
    KnowledgeBase,
    Quay,
    StorageZone,
    default_knowledge_base,
    knowledge_base_from_dict,
    knowledge_base_to_dict,
)
from .overrides import apply_policy_overrides
from .policy import TerminalPolicy, default_policy, policy_from_dict, policy_to_dict

__all__ = [
    "Container",
    "Crane",
    "FactBase",
    "IdSequence",
    "KnowledgeBase",
    "Operation",
    "Quay",
    "Ship",
    "StorageZone",
    "TerminalPolicy",
    "apply_policy_overrides",
    "compute_stats",
    "default_knowledge_base",
    "default_policy",
    "fact_base_to_dict",
    "knowledge_base_from_dict",
    "knowledge_base_to_dict",
    "policy_from_dict",
    "policy_to_dict",
]
