"""ChargerFilter - Which connector classes the user wants to see.

Three independent switches. A charger passes the filter when at least one
of its reported connector classes is enabled; the icon shown for it is the
highest-precedence class that is both reported and enabled.
"""

from dataclasses import dataclass, replace

from roadtrip_planner.constants import FilterConfig
from roadtrip_planner.model.charger import CONNECTOR_PRECEDENCE, Charger, ConnectorClass


@dataclass(frozen=True)
class ChargerFilter:
    """Active connector-class filter. Default enables only DC fast."""

    dc_fast: bool = FilterConfig.DEFAULT_DC_FAST
    level2: bool = FilterConfig.DEFAULT_LEVEL2
    level1: bool = FilterConfig.DEFAULT_LEVEL1

    def is_enabled(self, connector: ConnectorClass) -> bool:
        return {
            ConnectorClass.DC_FAST: self.dc_fast,
            ConnectorClass.LEVEL2: self.level2,
            ConnectorClass.LEVEL1: self.level1,
        }[connector]

    def toggled(self, connector: ConnectorClass) -> "ChargerFilter":
        """Return a copy with one class switched."""
        field_name = {
            ConnectorClass.DC_FAST: "dc_fast",
            ConnectorClass.LEVEL2: "level2",
            ConnectorClass.LEVEL1: "level1",
        }[connector]
        return replace(self, **{field_name: not self.is_enabled(connector)})

    def display_class(self, charger: Charger) -> ConnectorClass | None:
        """Highest-precedence class the charger has and the filter enables.

        Returns:
            The class whose icon represents the charger, or None if the
            charger is filtered out.
        """
        for connector in CONNECTOR_PRECEDENCE:
            if self.is_enabled(connector) and charger.has(connector):
                return connector
        return None

    def accepts(self, charger: Charger) -> bool:
        """Check if the charger has any enabled connector class."""
        return self.display_class(charger) is not None

    def apply(self, chargers: list[Charger]) -> list[Charger]:
        """Keep only accepted chargers, preserving order."""
        return [c for c in chargers if self.accepts(c)]

    @property
    def enabled_classes(self) -> list[ConnectorClass]:
        return [c for c in CONNECTOR_PRECEDENCE if self.is_enabled(c)]
