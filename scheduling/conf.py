"""App settings with defaults, overridable through ``settings.SCHEDULING``."""

from django.conf import settings

DEFAULTS = {
    # Upper bound for a count-terminated pattern.
    'MAX_OCCURRENCES': 500,
    # Maximum number of dates returned by the preview endpoint.
    'PREVIEW_LIMIT': 366,
}


def get_setting(name):
    """Return a scheduling setting, falling back to DEFAULTS."""
    overrides = getattr(settings, 'SCHEDULING', {}) or {}
    if name in overrides:
        return overrides[name]
    return DEFAULTS[name]
