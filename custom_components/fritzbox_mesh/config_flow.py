"""Config flow for Fritz!Box Mesh Paths integration.

Flow steps
──────────
  async_step_user  – Show the connection form, validate it by fetching a
                     real snapshot (or loading the debug JSON file), and
                     create the entry on success.
  async_step_init  – Options: poll interval, client interface types and
                     the debug JSON settings.

Error handling
──────────────
  "invalid_debug_json" – Debug JSON path missing, unreadable or malformed.
  "invalid_auth"       – HTTP 401/403 or "auth"/"password" in the message.
  "cannot_connect"     – Anything else (network unreachable, wrong port, …).
"""
from __future__ import annotations

import json
import logging

import voluptuous as vol

import homeassistant.helpers.config_validation as cv
from homeassistant import config_entries
from homeassistant.core import HomeAssistant
from homeassistant.data_entry_flow import FlowResult

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
    CLIENT_TYPE_CHOICES,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_USE_TLS,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_CLIENT_TYPES,
    DEFAULT_DEBUG_USE_JSON,
    DEFAULT_DEBUG_JSON_PATH,
)
from .fritz_mesh import FritzMeshFetcher, load_mesh_topology_from_json_file

_LOGGER = logging.getLogger(__name__)

# vol.Required → mandatory form field; vol.Optional → may be left blank
# (credentials are optional because some Fritz!Box units have no password
# on the local network).
STEP_USER_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_HOST, default=DEFAULT_HOST): str,
        vol.Required(CONF_PORT, default=DEFAULT_PORT): int,
        vol.Optional(CONF_USERNAME, default=""): str,
        vol.Optional(CONF_PASSWORD, default=""): str,
        vol.Required(CONF_USE_TLS, default=DEFAULT_USE_TLS): bool,
        vol.Required(CONF_POLL_INTERVAL, default=DEFAULT_POLL_INTERVAL): vol.All(
            int, vol.Range(min=10)
        ),
        vol.Optional(CONF_CLIENT_TYPES, default=DEFAULT_CLIENT_TYPES): cv.multi_select(
            CLIENT_TYPE_CHOICES
        ),
        vol.Required(CONF_DEBUG_USE_JSON, default=DEFAULT_DEBUG_USE_JSON): bool,
        vol.Optional(CONF_DEBUG_JSON_PATH, default=DEFAULT_DEBUG_JSON_PATH): str,
    }
)


def _build_options_schema(config_entry: config_entries.ConfigEntry) -> vol.Schema:
    """Build options schema with fallbacks to existing entry data."""

    def current(key: str, default):
        return config_entry.options.get(key, config_entry.data.get(key, default))

    return vol.Schema(
        {
            vol.Required(
                CONF_POLL_INTERVAL, default=current(CONF_POLL_INTERVAL, DEFAULT_POLL_INTERVAL)
            ): vol.All(int, vol.Range(min=10)),
            vol.Optional(
                CONF_CLIENT_TYPES, default=current(CONF_CLIENT_TYPES, DEFAULT_CLIENT_TYPES)
            ): cv.multi_select(CLIENT_TYPE_CHOICES),
            vol.Required(
                CONF_DEBUG_USE_JSON, default=current(CONF_DEBUG_USE_JSON, DEFAULT_DEBUG_USE_JSON)
            ): bool,
            vol.Optional(
                CONF_DEBUG_JSON_PATH, default=current(CONF_DEBUG_JSON_PATH, DEFAULT_DEBUG_JSON_PATH)
            ): str,
        }
    )


def classify_error(err: Exception) -> str:
    """Map a validation failure to a form error key."""
    if isinstance(err, json.JSONDecodeError):
        return "invalid_debug_json"
    err_str = str(err).lower()
    if any(kw in err_str for kw in ("debug_json_path", "json", "no such file", "is a directory", "must be an object")):
        return "invalid_debug_json"
    # Heuristic: auth-related words or HTTP 401/403 codes.
    if any(kw in err_str for kw in ("auth", "password", "401", "403")):
        return "invalid_auth"
    return "cannot_connect"


async def _validate_input(hass: HomeAssistant, data: dict) -> None:
    """Validate the form by loading one snapshot the way the coordinator will.

    Raises:
        Exception: Whatever the fetch or the debug file load raised; the
                   caller maps it to an error key via classify_error().
    """
    if data.get(CONF_DEBUG_USE_JSON, False):
        debug_json_path = str(data.get(CONF_DEBUG_JSON_PATH, "")).strip()
        if not debug_json_path:
            raise ValueError("debug_json_path is required when debug_use_json is enabled")
        await hass.async_add_executor_job(
            load_mesh_topology_from_json_file,
            debug_json_path,
            hass.config.path(),
        )
        return

    fetcher = FritzMeshFetcher(
        address=data[CONF_HOST],
        port=data[CONF_PORT],
        user=data.get(CONF_USERNAME, ""),
        password=data.get(CONF_PASSWORD, ""),
        use_tls=data.get(CONF_USE_TLS, False),
    )
    await hass.async_add_executor_job(fetcher.fetch)


class FritzMeshConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a UI config flow for Fritz!Box Mesh Paths."""

    VERSION = 1

    @staticmethod
    def async_get_options_flow(
        config_entry: config_entries.ConfigEntry,
    ) -> config_entries.OptionsFlow:
        """Return the options flow handler."""
        return FritzMeshOptionsFlow(config_entry)

    async def async_step_user(self, user_input: dict | None = None) -> FlowResult:
        """Handle the initial setup step shown to the user.

        Called with user_input=None to render the blank form, and with the
        submitted values afterwards.  The host is the unique id, so the same
        Fritz!Box cannot be added twice.
        """
        errors: dict[str, str] = {}

        if user_input is not None:
            await self.async_set_unique_id(user_input[CONF_HOST])
            self._abort_if_unique_id_configured()

            try:
                await _validate_input(self.hass, user_input)
            except Exception as err:
                _LOGGER.exception("Validation error: %s", err)
                errors["base"] = classify_error(err)
            else:
                return self.async_create_entry(
                    title=user_input[CONF_HOST],
                    data=user_input,
                )

        return self.async_show_form(
            step_id="user",
            data_schema=STEP_USER_SCHEMA,
            errors=errors,
        )


class FritzMeshOptionsFlow(config_entries.OptionsFlow):
    """Handle options for an existing Fritz!Box Mesh Paths config entry."""

    def __init__(self, config_entry: config_entries.ConfigEntry) -> None:
        """Initialise options flow."""
        self._config_entry = config_entry

    async def async_step_init(self, user_input: dict | None = None) -> FlowResult:
        """Manage options."""
        errors: dict[str, str] = {}
        if user_input is not None:
            if user_input.get(CONF_DEBUG_USE_JSON, False):
                debug_json_path = str(user_input.get(CONF_DEBUG_JSON_PATH, "")).strip()
                if not debug_json_path:
                    errors["base"] = "invalid_debug_json"
                else:
                    try:
                        await self.hass.async_add_executor_job(
                            load_mesh_topology_from_json_file,
                            debug_json_path,
                            self.hass.config.path(),
                        )
                    except Exception as err:
                        _LOGGER.exception("Options validation error: %s", err)
                        errors["base"] = "invalid_debug_json"

            if not errors:
                return self.async_create_entry(title="", data=user_input)

        return self.async_show_form(
            step_id="init",
            data_schema=_build_options_schema(self._config_entry),
            errors=errors,
        )
