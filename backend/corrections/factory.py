from .base import CorrectionStore
from .memory_store import InMemoryCorrectionStore
from .supabase_store import SupabaseCorrectionStore

STORES = {
    "memory": InMemoryCorrectionStore,
    "supabase": SupabaseCorrectionStore,
}


def get_correction_store(store_name: str) -> CorrectionStore:
    """Correction history backend for CORRECTION_STORE; ValueError if unknown or unconfigured."""
    store_cls = STORES.get(store_name)
    if store_cls is None:
        raise ValueError(
            f"Unknown correction store: '{store_name}'. "
            f"Supported stores: {', '.join(STORES)}"
        )
    return store_cls()
