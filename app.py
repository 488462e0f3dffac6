"""Wasteland Survivor (Streamlit)

Day-by-day survival: read the event, pick a choice, or spend the day hunting
or gathering water. Keep food, water and the party alive.

Principles:
- UI only renders + triggers (engine.session owns every state transition).
- Core domain and engine are pure Python modules.
- Content is LLM-only (Gemini). If the LLM fails we show the error and a single
  "wait it out" choice so the run can continue.

Entry point for Streamlit Cloud: app.py
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import asdict
from datetime import datetime
from typing import List

import streamlit as st

from content.errors import GameError
from content.providers.base import ProviderStatus
from content.providers.gemini import GeminiProvider
from core.effects import max_health_for
from core.modes import DEFAULT_MODES, get_mode_spec
from core.outcomes import can_hunt, hunting_success_from_reaction
from core.rng import stable_int_seed
from core.state import STATUS_DESCRIPTIONS, GameChoice, GameState, state_to_dict
from engine.config import EngineConfig
from engine.logging import dumps_run_export
from engine.saves import AUTO_SAVE_SLOT, MAX_SAVE_SLOTS, SaveManager
from engine.session import GameSession

APP_TITLE = "Wasteland Survivor"
APP_SUBTITLE = "One day at a time. Every choice costs something."
APP_VERSION = "1.0.0"

THEMES: List[str] = [
    "Nuclear Winter",
    "Zombie Outbreak",
    "Desert Wasteland",
    "Flooded World",
    "Alien Occupation",
]

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

st.set_page_config(page_title=APP_TITLE, page_icon="☢️", layout="wide", initial_sidebar_state="expanded")

CSS = """
<style>
.block-container {padding-top: 3.2rem; padding-bottom: 2rem;}
.card {
  border: 1px solid rgba(255,255,255,0.08);
  border-radius: 16px;
  padding: 14px 16px;
  background: rgba(255,255,255,0.03);
}
.pill {
  display: inline-block;
  padding: 2px 10px;
  margin-right: 4px;
  border-radius: 999px;
  border: 1px solid rgba(255,255,255,0.12);
  font-size: 12px;
  opacity: .85;
}
.pill.bad {border-color: rgba(255,120,120,0.35);}
.pill.ok {border-color: rgba(120,255,160,0.25);}
.muted {opacity:.75;}
</style>
"""

st.markdown(CSS, unsafe_allow_html=True)


# =========================
# Helpers
# =========================


def _get_api_key() -> str:
    # Streamlit Cloud: st.secrets
    try:
        if "GEMINI_API_KEY" in st.secrets:
            return str(st.secrets["GEMINI_API_KEY"])
    except FileNotFoundError:
        pass
    # Local
    return os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or ""


def _provider() -> GeminiProvider:
    return GeminiProvider.from_api_key_string(_get_api_key())


def _signed(n: int) -> str:
    return f"+{n}" if n > 0 else str(n)


def _ensure_state() -> None:
    ss = st.session_state
    if "theme" not in ss:
        ss.theme = THEMES[0]
    if "mode_key" not in ss:
        ss.mode_key = "normal"
    if "base_seed" not in ss:
        ss.base_seed = stable_int_seed(datetime.now().strftime("%Y%m%d")) % 100_000
    if "session" not in ss:
        ss.session = None
    if "aim_started" not in ss:
        ss.aim_started = None
    if "flash" not in ss:
        ss.flash = ""


def _saves(cfg: EngineConfig) -> SaveManager:
    return SaveManager(save_dir=cfg.save_dir)


def _start_run() -> None:
    ss = st.session_state
    cfg = EngineConfig(
        base_seed=int(ss.base_seed),
        theme=str(ss.theme),
        mode_key=str(ss.mode_key),
        save_dir=os.getenv("WASTELAND_SAVE_DIR", "saves"),
    )
    ss.session = GameSession(config=cfg, provider=_provider(), saves=_saves(cfg), autosave=True)
    ss.aim_started = None
    ss.flash = ""


def _guarded(fn, *args) -> None:
    """Run a session call; GameErrors become a flash message instead of a crash."""
    try:
        fn(*args)
    except GameError as e:
        st.session_state.flash = e.themed_message()


# =========================
# Rendering
# =========================


def render_resources(state: GameState) -> None:
    a, b, c = st.columns(3)
    a.metric("Day", state.day)
    b.metric("Food", state.food, delta=_signed(state.food_change) if state.food_change else None)
    c.metric("Water", state.water, delta=_signed(state.water_change) if state.water_change else None)


def render_survivors(state: GameState) -> None:
    st.subheader("Survivors")
    cols = st.columns(max(1, len(state.survivors)))
    for col, s in zip(cols, state.survivors):
        with col:
            st.markdown("<div class='card'>", unsafe_allow_html=True)
            label = f"**{s.name}**" + (" (you)" if s.is_player else "")
            st.markdown(label)
            cap = max_health_for(s)
            st.progress(max(0, s.health) / 100.0, text=f"{s.health}/{cap} HP" if s.is_alive else "Deceased")
            pills = "".join(
                f"<span class='pill bad' title='{STATUS_DESCRIPTIONS.get(t, '')}'>{t}</span>" for t in s.statuses
            )
            if pills:
                st.markdown(pills, unsafe_allow_html=True)
            if s.companion is not None:
                st.caption(f"🐾 {s.companion.name} ({s.companion.type})")
            st.markdown("</div>", unsafe_allow_html=True)


def render_choices(session: GameSession) -> None:
    state = session.state
    choices = state.current_choices or ()
    if not choices:
        return
    st.subheader("What do you do?")
    cols = st.columns(len(choices))
    for col, choice in zip(cols, choices):
        with col:
            _render_choice(session, choice)


def _render_choice(session: GameSession, choice: GameChoice) -> None:
    state = session.state
    cost = []
    if choice.cost.food:
        cost.append(f"{choice.cost.food} food")
    if choice.cost.water:
        cost.append(f"{choice.cost.water} water")
    affordable = choice.affordable(state.food, state.water)
    st.caption("Cost: " + (", ".join(cost) if cost else "none"))
    if st.button(
        choice.action,
        key=f"choice_{state.day}_{choice.id}",
        disabled=not (affordable and session.can_act()),
        use_container_width=True,
    ):
        _guarded(session.choose, choice.id)
        st.rerun()
    if not affordable:
        st.caption("Not enough supplies.")


def render_actions(session: GameSession) -> None:
    """Hunt (reaction mini-game) and water gathering."""
    ss = st.session_state
    state = session.state
    living = state.living_survivors
    if not living:
        return

    st.subheader("Or spend the day foraging")
    left, right = st.columns(2)

    with left:
        hunters = [s for s in living if can_hunt(s)]
        if not hunters:
            st.caption("Nobody is fit to hunt.")
        else:
            hunter = st.selectbox("Hunter", hunters, format_func=lambda s: s.name, key=f"hunter_{state.day}")
            disabled = state.hunt_performed_today or not session.can_act()
            if ss.aim_started is None:
                if st.button("Take aim", disabled=disabled, use_container_width=True):
                    ss.aim_started = time.monotonic()
                    st.rerun()
            else:
                st.caption("Shoot as fast as you can!")
                if st.button("🎯 Shoot", disabled=disabled, use_container_width=True):
                    reaction_ms = (time.monotonic() - ss.aim_started) * 1000.0
                    ss.aim_started = None
                    _guarded(session.hunt, hunter.id, hunting_success_from_reaction(reaction_ms))
                    st.rerun()

    with right:
        gatherer = st.selectbox("Gatherer", living, format_func=lambda s: s.name, key=f"gatherer_{state.day}")
        if st.button(
            "Search for water",
            disabled=state.gather_performed_today or not session.can_act(),
            use_container_width=True,
        ):
            _guarded(session.gather, gatherer.id)
            st.rerun()


def render_naming(session: GameSession) -> None:
    info = session.state.companion_to_name_info
    if info is None:
        return
    owner = session.state.survivor(info.survivor_id)
    st.markdown("<div class='card'>", unsafe_allow_html=True)
    st.markdown(f"### A new companion joins {owner.name if owner else 'the party'}!")
    st.caption(f"A {info.companion.type} is now travelling with you.")
    name = st.text_input("Name", value=info.companion.name, key=f"naming_{session.state.day}")
    a, b = st.columns(2)
    if a.button("Name it", use_container_width=True):
        _guarded(session.name_companion, name)
        st.rerun()
    if b.button("Skip", use_container_width=True):
        _guarded(session.skip_naming)
        st.rerun()
    st.markdown("</div>", unsafe_allow_html=True)


def render_history(state: GameState) -> None:
    if not state.event_history:
        return
    with st.expander("Recent days"):
        for h in state.event_history:
            st.markdown(f"**Day {h.day}.** {h.description}")
            st.caption(h.outcome)


def page_run() -> None:
    ss = st.session_state
    session: GameSession = ss.session

    if session.state.is_loading:
        with st.spinner("Scanning the radio..."):
            session.fetch_event_if_needed()

    state = session.state
    render_resources(state)

    if ss.flash:
        st.warning(ss.flash)
        ss.flash = ""
    if state.error:
        st.error(state.error)

    st.markdown("<div class='card'>", unsafe_allow_html=True)
    st.markdown(state.event_text)
    if state.last_outcome:
        st.caption(state.last_outcome)
    st.markdown("</div>", unsafe_allow_html=True)
    st.write("")

    if state.is_game_over:
        st.error(f"Game over on day {state.day}: {state.game_over_message}")
        if st.button("Start again", use_container_width=True):
            ss.session.reset()
            st.rerun()
    elif state.is_naming_companion:
        render_naming(session)
    else:
        render_choices(session)
        render_actions(session)

    st.write("")
    render_survivors(state)
    render_history(state)


def page_debug() -> None:
    ss = st.session_state
    session: GameSession = ss.session
    st.title("Debug")

    st.subheader("Provider")
    st.json(asdict(session.provider.status()) if session.provider else asdict(ProviderStatus(False, "none", "")))

    st.subheader("EngineConfig")
    st.json(asdict(session.config))

    st.subheader("GameState")
    st.json(state_to_dict(session.state))

    st.subheader("Day logs")
    st.json(session.logs)


# =========================
# Sidebar
# =========================


def save_controls(session: GameSession) -> None:
    st.sidebar.markdown("---")
    st.sidebar.markdown("### Saves")
    saves = session.saves or _saves(session.config)
    slot = st.sidebar.number_input("Slot", min_value=1, max_value=MAX_SAVE_SLOTS, value=1, step=1)
    a, b = st.sidebar.columns(2)
    if a.button("Save", use_container_width=True):
        _guarded(session.save, int(slot))
        st.rerun()
    if b.button("Load", use_container_width=True):
        try:
            if not session.load(int(slot)):
                st.session_state.flash = f"Slot {int(slot)} is empty or unreadable."
        except GameError as e:
            st.session_state.flash = e.themed_message()
        st.rerun()

    for meta in saves.list_saves():
        tag = "auto" if meta.get("slot") == AUTO_SAVE_SLOT else f"#{meta.get('slot')}"
        st.sidebar.caption(
            f"{tag} · {meta.get('name')} · {meta.get('survivors')} alive · "
            f"{meta.get('food')} food / {meta.get('water')} water"
        )

    st.sidebar.download_button(
        "Export run (JSON)",
        data=dumps_run_export(session.export_run()).encode("utf-8"),
        file_name=f"wasteland_run_{session.config.base_seed}_day{session.state.day}.json",
        mime="application/json",
        use_container_width=True,
    )


def sidebar() -> str:
    ss = st.session_state
    started = ss.session is not None

    st.sidebar.markdown(f"**{APP_TITLE}**  ")
    st.sidebar.markdown(f"v{APP_VERSION}")
    st.sidebar.markdown("---")

    ss.theme = st.sidebar.selectbox("Theme", THEMES, index=THEMES.index(ss.theme), disabled=started)
    mode_keys = list(DEFAULT_MODES)
    ss.mode_key = st.sidebar.selectbox(
        "Difficulty",
        mode_keys,
        index=mode_keys.index(ss.mode_key),
        format_func=lambda k: get_mode_spec(k).label,
        disabled=started,
    )
    st.sidebar.caption(get_mode_spec(ss.mode_key).desc)
    ss.base_seed = st.sidebar.number_input("Seed", value=int(ss.base_seed), step=1, disabled=started)

    st.sidebar.markdown("---")
    ps = _provider().status() if not started else ss.session.provider.status()
    if ps.ok:
        st.sidebar.success(f"Gemini ready ({ps.backend} / {ps.model})")
    else:
        st.sidebar.error("Gemini not ready")
        st.sidebar.caption(ps.error or "API key missing")

    cols = st.sidebar.columns(2)
    with cols[0]:
        if st.button("Start", disabled=started or not ps.ok, use_container_width=True):
            _start_run()
            st.rerun()
    with cols[1]:
        if st.button("Reset", disabled=not started, use_container_width=True):
            ss.session = None
            ss.aim_started = None
            st.rerun()

    if started:
        save_controls(ss.session)

    st.sidebar.markdown("---")
    return st.sidebar.radio("Page", ["Play", "Debug"], index=0)


# =========================
# Main
# =========================


def main() -> None:
    _ensure_state()
    page = sidebar()
    ss = st.session_state

    if ss.session is None:
        st.title(APP_TITLE)
        st.caption(APP_SUBTITLE)
        st.info("Pick a theme and difficulty in the sidebar, then press Start.")
        return

    if page == "Play":
        page_run()
    else:
        page_debug()


if __name__ == "__main__":
    main()
