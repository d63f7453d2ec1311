import voluptuous as vol
from homeassistant import config_entries
from homeassistant.core import callback
from homeassistant.helpers.selector import selector

from .const import DOMAIN

CONF_IS_IN_ISRAEL = "is_in_israel"
DEFAULT_IS_IN_ISRAEL = False
CONF_CYCLE_TYPE = "cycle_type"
DEFAULT_CYCLE_TYPE = "month"  # month | week
CONF_USE_ONLINE_CALENDAR = "use_online_calendar"
DEFAULT_USE_ONLINE_CALENDAR = True
CONF_ORACLE_TIMEOUT = "oracle_timeout"
DEFAULT_ORACLE_TIMEOUT = 2


def _cycle_selector():
    return selector({
        "select": {
            "options": [
                {"value": "month", "label": "חודשי (ל׳ ימים)"},
                {"value": "week", "label": "שבועי (ז׳ ימים)"},
            ]
        }
    })


def _timeout_selector():
    return selector({
        "number": {
            "min": 1,
            "max": 10,
            "step": 1,
            "mode": "slider",
            "unit_of_measurement": "s",
        }
    })


class TehilimTrackerConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for Tehilim Tracker."""
    VERSION = 1

    async def async_step_user(self, user_input=None):
        # Only one instance
        if self._async_current_entries():
            return self.async_abort(reason="single_instance_allowed")

        if user_input is None:
            schema = vol.Schema(
                {
                    vol.Optional(CONF_IS_IN_ISRAEL, default=DEFAULT_IS_IN_ISRAEL): bool,
                    vol.Optional(CONF_CYCLE_TYPE, default=DEFAULT_CYCLE_TYPE): _cycle_selector(),
                    vol.Optional(CONF_USE_ONLINE_CALENDAR, default=DEFAULT_USE_ONLINE_CALENDAR): bool,
                    vol.Optional(CONF_ORACLE_TIMEOUT, default=DEFAULT_ORACLE_TIMEOUT): _timeout_selector(),
                }
            )
            return self.async_show_form(step_id="user", data_schema=schema)

        return self.async_create_entry(title="Tehilim Tracker", data=user_input)

    @staticmethod
    @callback
    def async_get_options_flow(config_entry):
        return OptionsFlowHandler(config_entry)


class OptionsFlowHandler(config_entries.OptionsFlow):
    """Options flow: same keys as the initial setup."""

    def __init__(self, config_entry):
        self._config_entry = config_entry

    async def async_step_init(self, user_input=None):
        data = self._config_entry.data or {}
        opts = self._config_entry.options or {}

        def get(k, default):
            return opts.get(k, data.get(k, default))

        if user_input is None:
            schema = vol.Schema(
                {
                    vol.Optional(CONF_IS_IN_ISRAEL, default=get(CONF_IS_IN_ISRAEL, DEFAULT_IS_IN_ISRAEL)): bool,
                    vol.Optional(
                        CONF_CYCLE_TYPE,
                        default=get(CONF_CYCLE_TYPE, DEFAULT_CYCLE_TYPE),
                    ): _cycle_selector(),
                    vol.Optional(
                        CONF_USE_ONLINE_CALENDAR,
                        default=get(CONF_USE_ONLINE_CALENDAR, DEFAULT_USE_ONLINE_CALENDAR),
                    ): bool,
                    vol.Optional(
                        CONF_ORACLE_TIMEOUT,
                        default=get(CONF_ORACLE_TIMEOUT, DEFAULT_ORACLE_TIMEOUT),
                    ): _timeout_selector(),
                }
            )
            return self.async_show_form(step_id="init", data_schema=schema)

        new_opts = {**self._config_entry.options, **user_input}
        return self.async_create_entry(title="", data=new_opts)
