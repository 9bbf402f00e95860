"""Provider orchestration.

Components:
- ProviderOrchestrator: Budgeted fallback chain over provider adapters
- ProviderHealth: Injectable per-provider error cooldown state
- select_provider: Query-type based provider recommendation
"""

from .health import ProviderHealth
from .orchestrator import ProviderOrchestrator, build_fallback_chain
from .selection import ModelSelection, detect_query_type, select_provider

__all__ = [
    "ModelSelection",
    "ProviderHealth",
    "ProviderOrchestrator",
    "build_fallback_chain",
    "detect_query_type",
    "select_provider",
]
