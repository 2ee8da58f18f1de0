"""Registration store adapters.

Both credential tiers of the hosted registrations table sit behind one
RegistrationTable so services never construct clients themselves.
"""

from registration_api.adapters.store.base import (
    RegistrationStoreView,
    RegistrationTable,
    StoreError,
)
from registration_api.adapters.store.factory import create_registration_table

__all__ = [
    "RegistrationStoreView",
    "RegistrationTable",
    "StoreError",
    "create_registration_table",
]
