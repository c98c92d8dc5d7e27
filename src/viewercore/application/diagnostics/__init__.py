from .event_schema import DiagnosticEvent, describe_error, make_event, new_event_id

__all__ = ["DiagnosticEvent", "describe_error", "make_event", "new_event_id"]
