from typing import Any, Dict

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

DEFAULTS: Dict[str, Any] = {
    'DFA_SUFFIX': '_DFA',
    'MIN_SUFFIX': '_MIN',
    'STATE_SET_SEPARATOR': '-',
    'MINIMISED_STATE_PREFIX': 'S',
    'PRUNE_UNREACHABLE_BEFORE_MINIMISE': False,
}


def get_setting(key: str) -> Any:
    """
    Look up a toolkit setting.

    Values come from the optional ``FATOOLKIT`` dictionary in the Django
    settings. Reading it loads lazy settings from ``DJANGO_SETTINGS_MODULE``
    if needed; when no settings are available at all (plain library use)
    the defaults apply.
    """
    if key not in DEFAULTS:
        raise KeyError(f"Unknown fatoolkit setting: {key}")

    try:
        overrides = getattr(settings, 'FATOOLKIT', None) or {}
    except ImproperlyConfigured:
        overrides = {}

    return overrides.get(key, DEFAULTS[key])
