from .backend import (
    BackendClient,
    BackendError,
    delete_each,
    ensure_success,
    error_message,
    unwrap,
    unwrap_list,
)
from .loaders import (
    as_choices,
    customer_type_choices,
    load_choices,
    load_list,
    load_object,
    specific_purpose_choices,
)

__all__ = [
    "BackendClient",
    "BackendError",
    "as_choices",
    "customer_type_choices",
    "delete_each",
    "ensure_success",
    "error_message",
    "load_choices",
    "load_list",
    "load_object",
    "specific_purpose_choices",
    "unwrap",
    "unwrap_list",
]
