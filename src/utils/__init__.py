from .date_utils import at_hour, ensure_aware, local_now, next_day_at_hour

__all__ = [
    'at_hour',
    'ensure_aware',
    'local_now',
    'next_day_at_hour'
]
