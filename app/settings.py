from constants import *
import copy
import yaml
import os

import logging

# Retrieve main logger
logger = logging.getLogger("main")

# Environment variable -> (section, key, type)
ENV_OVERRIDES = {
    "DATA_DIR": ("paths", "data_dir", str),
    "UPLOADS_DIR": ("paths", "uploads_dir", str),
    "PUBLIC_DIR": ("paths", "public_dir", str),
    "ADMIN_USERNAME": ("admin", "username", str),
    "ADMIN_PASSWORD": ("admin", "password", str),
    "ADMIN_PASSWORD_HASH": ("admin", "password_hash", str),
    "SESSION_SECRET": ("session", "secret", str),
    "SESSION_TTL_SECONDS": ("session", "ttl_seconds", int),
    "SESSION_COOKIE_SECURE": ("session", "cookie_secure", bool),
    "REDIS_URL": ("session", "redis_url", str),
    "CACHE_TTL_SECONDS": ("cache", "ttl_seconds", int),
    "RATELIMIT_ENABLED": ("ratelimit", "enabled", bool),
}


# Cache variable
_cached_settings = None


def _parse_bool(value):
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _merge_section_wise(base, overrides):
    """Merge overrides into base one section at a time."""
    merged = copy.deepcopy(base)
    for section, values in (overrides or {}).items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict):
            merged[section].update(values)
        else:
            merged[section] = values
    return merged


def _apply_environment(settings, environ):
    for env_name, (section, key, cast) in ENV_OVERRIDES.items():
        raw = environ.get(env_name)
        if raw is None or raw == "":
            continue
        try:
            value = _parse_bool(raw) if cast is bool else cast(raw)
        except ValueError:
            logger.error(f"Ignoring invalid value for {env_name}: {raw!r}")
            continue
        settings.setdefault(section, {})[key] = value
    return settings


def load_settings(force=False, config_file=None, environ=None):
    """
    Build the application settings.

    Priority: environment variables, then the optional YAML file named by
    CMS_CONFIG_FILE (or ``config_file``), then DEFAULT_SETTINGS.
    """
    global _cached_settings

    if _cached_settings and not force:
        return _cached_settings

    environ = os.environ if environ is None else environ
    config_file = config_file or environ.get("CMS_CONFIG_FILE")

    settings = copy.deepcopy(DEFAULT_SETTINGS)
    if config_file:
        if os.path.exists(config_file):
            logger.debug(f"Reading configuration file: {config_file}")
            with open(config_file, "r") as yaml_file:
                settings = _merge_section_wise(settings, yaml.safe_load(yaml_file) or {})
        else:
            logger.warning(f"Configuration file {config_file} does not exist, using defaults.")

    settings = _apply_environment(settings, environ)

    _cached_settings = settings
    return settings


def merge_settings(settings, overrides):
    """Return a copy of settings with overrides merged section by section."""
    return _merge_section_wise(settings, overrides)

