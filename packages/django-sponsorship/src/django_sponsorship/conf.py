"""Configuration helpers for django-sponsorship."""

from functools import lru_cache
from importlib import import_module

from django.conf import settings

from .exceptions import BackendLoadError


DEFAULTS = {
    "AUTHORITY_VERIFIER": "django_sponsorship.backends.SettingsAuthorityVerifier",
    "FEE_TRANSFER": "django_sponsorship.backends.ConsoleFeeTransfer",
    "CLOCK": "django_sponsorship.backends.UnixClock",
    "VERIFIED_AUTHORITIES": [],
    "DEFAULT_MAX_AGREEMENTS": 1000,
    "DEFAULT_CREATION_FEE": 1000,
    # Stacks burn address; never a valid authority
    "BURN_ADDRESS": "SP000000000000000000002Q6VF78",
}


def get_setting(name: str, default=None):
    """Get a setting with SPONSORSHIP_ prefix, falling back to DEFAULTS."""
    if default is None:
        default = DEFAULTS.get(name)
    return getattr(settings, f"SPONSORSHIP_{name}", default)


def default_max_agreements() -> int:
    return get_setting("DEFAULT_MAX_AGREEMENTS")


def default_creation_fee() -> int:
    return get_setting("DEFAULT_CREATION_FEE")


@lru_cache(maxsize=32)
def load_backend(dotted_path: str, base_class_path: str):
    """
    Import and instantiate a backend from dotted path.

    Raises BackendLoadError for bad imports or classes that do not
    subclass the expected base.
    """
    try:
        module_path, class_name = dotted_path.rsplit('.', 1)
    except ValueError:
        raise BackendLoadError(dotted_path, "Invalid dotted path format")

    try:
        module = import_module(module_path)
    except ImportError as e:
        raise BackendLoadError(dotted_path, f"Cannot import module: {e}")

    try:
        backend_class = getattr(module, class_name)
    except AttributeError:
        raise BackendLoadError(dotted_path, f"Class '{class_name}' not found in module")

    base_module_path, base_name = base_class_path.rsplit('.', 1)
    base_class = getattr(import_module(base_module_path), base_name)
    if not isinstance(backend_class, type) or not issubclass(backend_class, base_class):
        raise BackendLoadError(
            dotted_path,
            f"'{class_name}' must be a subclass of {base_name}"
        )

    return backend_class()


def get_authority_verifier():
    return load_backend(
        get_setting("AUTHORITY_VERIFIER"),
        "django_sponsorship.backends.BaseAuthorityVerifier",
    )


def get_fee_transfer():
    return load_backend(
        get_setting("FEE_TRANSFER"),
        "django_sponsorship.backends.BaseFeeTransfer",
    )


def get_clock():
    return load_backend(
        get_setting("CLOCK"),
        "django_sponsorship.backends.BaseClock",
    )


def clear_backend_cache():
    """Clear the backend loading cache. Useful for testing."""
    load_backend.cache_clear()
