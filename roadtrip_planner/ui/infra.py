"""Infrastructure utilities for Streamlit UI operations.

This module wraps Streamlit-specific infrastructure (st.rerun, map version)
so tests can patch a single place instead of every caller.

Only infrastructure belongs here. Session state objects (sm, ctx, engine)
are read in actions.py.
"""

import logging

import streamlit as st

logger = logging.getLogger(__name__)


def trigger_rerun() -> None:
    """Trigger a full Streamlit rerun.

    In tests, patch 'roadtrip_planner.ui.infra.trigger_rerun' to prevent
    actual reruns (which raise StopExecution outside a script run).
    """
    st.rerun()


def bump_map_version() -> None:
    """Increment map_version so the deck component is created fresh.

    A fresh component has no memory of its last click event, so the same
    click is not replayed on the next rerun.
    """
    old_version = st.session_state.get("map_version", 0)
    st.session_state.map_version = old_version + 1
    logger.info(f"[MAP] Bumped map_version: {old_version} -> {old_version + 1}")


def reload_map() -> None:
    """Clear stale click state and rerun. Raises StopExecution inside Streamlit."""
    bump_map_version()
    trigger_rerun()
