from .clipboard_watcher import ClipboardWatcher
from .convert_flow import ConvertStateMachine
from .error_policy import classify_conversion_error, failure_hint, format_classified_error

__all__ = [
    "ClipboardWatcher",
    "ConvertStateMachine",
    "classify_conversion_error",
    "failure_hint",
    "format_classified_error",
]
