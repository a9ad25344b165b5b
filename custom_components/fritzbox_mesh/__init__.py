"""Fritz!Box Mesh Paths custom component.

Integration life-cycle
──────────────────────
1. async_setup_entry()  – Called once per config entry (i.e. once per
                          Fritz!Box the user has configured).  Creates the
                          FritzMeshCoordinator, does the first refresh, then
                          forwards setup to each platform (sensor,
                          binary_sensor).

2. async_unload_entry() – Called when the user removes the integration or HA
                          shuts down.  Tears down all platform entities and
                          removes the coordinator from hass.data.

Changing options (poll interval, client types, debug JSON) reloads the entry.
"""
from __future__ import annotations

import logging

import homeassistant.helpers.config_validation as cv
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from .const import (
    DOMAIN,
    CONF_HOST,
    CONF_PORT,
    CONF_USERNAME,
    CONF_PASSWORD,
    CONF_USE_TLS,
    CONF_POLL_INTERVAL,
    CONF_CLIENT_TYPES,
    CONF_DEBUG_USE_JSON,
    CONF_DEBUG_JSON_PATH,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_CLIENT_TYPES,
    DEFAULT_DEBUG_USE_JSON,
    DEFAULT_DEBUG_JSON_PATH,
)
from .coordinator import FritzMeshCoordinator

_LOGGER = logging.getLogger(__name__)

CONFIG_SCHEMA = cv.config_entry_only_config_schema(DOMAIN)
PLATFORMS = ["sensor", "binary_sensor"]


def _entry_option(entry: ConfigEntry, key: str, default):
    """Options override data; data overrides the default."""
    return entry.options.get(key, entry.data.get(key, default))


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up Fritz!Box Mesh Paths from a config entry."""
    coordinator = FritzMeshCoordinator(
        hass=hass,
        host=entry.data[CONF_HOST],
        port=entry.data[CONF_PORT],
        username=entry.data.get(CONF_USERNAME, ""),
        password=entry.data.get(CONF_PASSWORD, ""),
        use_tls=entry.data.get(CONF_USE_TLS, False),
        poll_interval=_entry_option(entry, CONF_POLL_INTERVAL, DEFAULT_POLL_INTERVAL),
        client_types=_entry_option(entry, CONF_CLIENT_TYPES, DEFAULT_CLIENT_TYPES),
        debug_use_json=_entry_option(entry, CONF_DEBUG_USE_JSON, DEFAULT_DEBUG_USE_JSON),
        debug_json_path=_entry_option(entry, CONF_DEBUG_JSON_PATH, DEFAULT_DEBUG_JSON_PATH),
    )

    await coordinator.async_config_entry_first_refresh()
    _LOGGER.debug("Fritz!Box mesh coordinator ready for %s", entry.data[CONF_HOST])
    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = coordinator
    entry.async_on_unload(entry.add_update_listener(_async_update_listener))
    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unload_ok:
        hass.data[DOMAIN].pop(entry.entry_id)
    return unload_ok


async def _async_update_listener(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Reload entry when options change."""
    await hass.config_entries.async_reload(entry.entry_id)
