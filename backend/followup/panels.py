"""
Role-gated view composition.

Two independent checks decide what a user sees:
- the operational role (doctor / nurse / agent) selects dashboard panels;
- the director permission alone unlocks the director analytics.
Pure functions, no store access.
"""

import enum
from typing import Iterable, Optional

from followup.enums import Permission, Role
from followup.exceptions import PanelForbiddenError


class Panel(str, enum.Enum):
    POPULATION_TOTALS = "population_totals"      # patient count + scheduled appointments
    OVERDUE_COUNT = "overdue_count"
    OVERDUE_LIST = "overdue_list"                # Busca Ativa
    QUICK_ACTIONS = "quick_actions"              # shortcuts to patient and record entry
    TERRITORY_SHORTCUT = "territory_shortcut"    # home-visit management
    DIRECTOR_ANALYTICS = "director_analytics"


ROLE_PANELS: dict[Role, frozenset] = {
    Role.DOCTOR: frozenset({Panel.POPULATION_TOTALS, Panel.QUICK_ACTIONS}),
    Role.NURSE: frozenset({Panel.POPULATION_TOTALS, Panel.OVERDUE_COUNT, Panel.OVERDUE_LIST}),
    Role.AGENT: frozenset({Panel.OVERDUE_COUNT, Panel.OVERDUE_LIST, Panel.TERRITORY_SHORTCUT}),
}

ROLE_GREETINGS = {
    Role.DOCTOR: "Dr(a). ",
    Role.NURSE: "Enf. ",
    Role.AGENT: "",
}


def is_director(permissions: Optional[Iterable[str]]) -> bool:
    return Permission.DIRECTOR.value in {str(getattr(p, "value", p)) for p in permissions or ()}


def authorized_panels(role, director: bool = False) -> frozenset:
    """Panels visible to `role`; unknown or missing roles get none of the role panels."""
    panels = ROLE_PANELS.get(Role.parse(role), frozenset())
    if director:
        panels = panels | {Panel.DIRECTOR_ANALYTICS}
    return panels


def ensure_panel(panels: Iterable[Panel], panel: Panel) -> None:
    if panel not in set(panels):
        raise PanelForbiddenError(panel.value)


def role_greeting(role, full_name: Optional[str]) -> str:
    """Dashboard greeting: role honorific followed by the first name."""
    first_name = full_name.split()[0] if full_name and full_name.strip() else ""
    role = Role.parse(role)
    if role is None:
        return first_name
    return f"Boas-vindas, {ROLE_GREETINGS[role]}{first_name}".rstrip()


def sorted_panel_names(panels: Iterable[Panel]) -> list[str]:
    order = list(Panel)
    return [p.value for p in sorted(panels, key=order.index)]
