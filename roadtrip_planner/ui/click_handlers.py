"""Map click dispatch.

Pickable markers carry "type" and "id" in their layer rows (see
Marker.to_layer_datum). A click on a charger selects that charger (and
loads food around it); a click on a food marker selects the place. User
and destination markers only show their tooltip.
"""

import logging
from typing import Any

from roadtrip_planner.constants import ClickConfig
from roadtrip_planner.ui import actions
from roadtrip_planner.ui.context import TripContext
from roadtrip_planner.ui.proxy_client import ProxyClient

logger = logging.getLogger(__name__)


def dispatch_click(ctx: TripContext, client: ProxyClient, clicked_object: dict[str, Any]) -> bool:
    """Route a marker click to its handler.

    Returns:
        True if the click changed the selection.
    """
    click_type = clicked_object.get("type")
    ref_id = clicked_object.get("id")
    logger.info(f"[CLICK] type={click_type} id={ref_id}")

    if click_type == ClickConfig.TYPE_CHARGER:
        return handle_charger_click(ctx=ctx, client=client, ref_id=ref_id)
    if click_type == ClickConfig.TYPE_FOOD:
        return handle_food_click(ctx=ctx, ref_id=ref_id)
    return False


def handle_charger_click(ctx: TripContext, client: ProxyClient, ref_id: Any) -> bool:
    for charger in ctx.chargers.all:
        if str(charger.id) == str(ref_id):
            if charger == ctx.chargers.selected:
                return False
            actions.select_charger(ctx=ctx, client=client, charger=charger)
            return True
    logger.warning(f"[CLICK] Charger {ref_id} is no longer in the charger list")
    return False


def handle_food_click(ctx: TripContext, ref_id: Any) -> bool:
    # Food markers are keyed by their index in the current food list
    try:
        food = ctx.food.items[int(ref_id)]
    except (TypeError, ValueError, IndexError):
        logger.warning(f"[CLICK] Food marker {ref_id} does not match the food list")
        return False
    if food == ctx.food.selected:
        return False
    actions.select_food(ctx=ctx, food=food)
    return True
