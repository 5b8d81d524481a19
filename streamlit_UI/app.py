"""Streamlit front-end for scoring observed barter and blaze luck."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import altair as alt
import numpy as np
import pandas as pd
import streamlit as st

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from luck_core import (
    InvalidDistributionError,
    ObservedStreamScore,
    SimulationGoalsBuilder,
    SimulationRunSummary,
    run_simulation,
    score_observed_stream,
)

MAX_UI_CYCLES = 20_000
UI_THREADS = 2
UI_CHECKPOINT_SECONDS = 0.25
UI_POLL_SECONDS = 0.5


def ensure_session_state_defaults() -> None:
    """Populate Streamlit session state with expected default entries."""

    st.session_state.setdefault("runs_input", 22)
    st.session_state.setdefault("pearls_per_run_input", 10)
    st.session_state.setdefault("barters_input", 262)
    st.session_state.setdefault("successful_barters_input", 42)
    st.session_state.setdefault("rods_input", 211)
    st.session_state.setdefault("fights_input", 305)
    st.session_state.setdefault("simulation_cycles_input", 2_000)
    st.session_state.setdefault("simulation_seed_input", 42)
    st.session_state.setdefault("simulation_result", None)
    st.session_state.setdefault("simulation_error", None)


def render_observation_inputs() -> None:
    """Render the inputs describing the observed stream."""

    with st.container(border=True):
        st.markdown("**Observed stream**")
        cols = st.columns(2)
        cols[0].number_input("Runs", min_value=1, step=1, key="runs_input")
        cols[1].number_input("Pearl target per run", min_value=0, step=1, key="pearls_per_run_input")

        barter_cols = st.columns(2)
        barter_cols[0].number_input("Barters made", min_value=0, step=1, key="barters_input")
        barter_cols[1].number_input(
            "Barters that dropped pearls",
            min_value=0,
            step=1,
            key="successful_barters_input",
        )

        blaze_cols = st.columns(2)
        blaze_cols[0].number_input("Blaze rods collected", min_value=0, step=1, key="rods_input")
        blaze_cols[1].number_input("Blazes killed", min_value=0, step=1, key="fights_input")


def compute_observed_score() -> tuple[Optional[ObservedStreamScore], Optional[str]]:
    """Score the current inputs, returning an error message instead of raising."""

    try:
        score = score_observed_stream(
            number_of_runs=int(st.session_state.runs_input),
            target_pearls_per_run=int(st.session_state.pearls_per_run_input),
            total_barters=int(st.session_state.barters_input),
            successful_barters=int(st.session_state.successful_barters_input),
            target_rods=int(st.session_state.rods_input),
            total_fights=int(st.session_state.fights_input),
        )
    except InvalidDistributionError as exc:
        return None, str(exc)
    return score, None


def render_score_card(score: ObservedStreamScore) -> None:
    """Render luck (CDF) and exact-outcome probability (PMF) metrics."""

    with st.container(border=True):
        st.markdown("**Luck estimate**")
        luck_cols = st.columns(3)
        luck_cols[0].metric("Pearl luck", f"{score.pearl_luck:.3e}")
        luck_cols[1].metric("Rod luck", f"{score.rod_luck:.3e}")
        luck_cols[2].metric("Combined luck", f"{score.luck:.3e}")

        probability_cols = st.columns(3)
        probability_cols[0].metric("Pearl probability", f"{score.pearl_probability:.3e}")
        probability_cols[1].metric("Rod probability", f"{score.rod_probability:.3e}")
        probability_cols[2].metric("Combined probability", f"{score.probability:.3e}")
        st.caption("Luck is the chance of doing at least this well; lower means luckier.")


def run_simulation_from_ui() -> None:
    """Simulate streams with the observed targets and keep the summary in session state."""

    st.session_state.simulation_error = None
    st.session_state.simulation_result = None
    runs = int(st.session_state.runs_input)
    pearls_per_run = int(st.session_state.pearls_per_run_input)
    rods = int(st.session_state.rods_input)
    builder = SimulationGoalsBuilder().add_stream()
    # Rods are collected across the whole stream, so spread them over the runs.
    for index in range(runs):
        builder.add_run(pearls_per_run, rods // runs + (1 if index < rods % runs else 0))
    goals = builder.goals()
    try:
        with st.spinner("Simulating streams…"):
            st.session_state.simulation_result = run_simulation(
                goals,
                cycles=min(int(st.session_state.simulation_cycles_input), MAX_UI_CYCLES),
                thread_count=UI_THREADS,
                seed=int(st.session_state.simulation_seed_input),
                checkpoint_interval=UI_CHECKPOINT_SECONDS,
                poll_interval=UI_POLL_SECONDS,
            )
    except Exception as exc:  # broad to surface any numerical issues to the user
        st.session_state.simulation_error = str(exc)


def render_frequency_chart(table: pd.DataFrame, key_column: str, title: str) -> None:
    """Plot simulated frequencies as bars and model probabilities as a line."""

    if table.empty:
        st.caption(f"No {title.lower()} samples to plot.")
        return
    long_table = table.melt(
        id_vars=[key_column],
        value_vars=["frequency", "estimated_probability"],
        var_name="series",
        value_name="probability",
    )
    bars = alt.Chart(long_table[long_table["series"] == "frequency"]).mark_bar(
        color="#6366f1",
        opacity=0.7,
    ).encode(
        x=alt.X(f"{key_column}:Q", title=title),
        y=alt.Y("probability:Q", title="Probability", axis=alt.Axis(format=".1%")),
        tooltip=[
            alt.Tooltip(f"{key_column}:Q", title=title),
            alt.Tooltip("probability:Q", title="Simulated", format=".3%"),
        ],
    )
    line = alt.Chart(long_table[long_table["series"] == "estimated_probability"]).mark_line(
        color="#f97316",
    ).encode(
        x=f"{key_column}:Q",
        y="probability:Q",
    )
    chart = (bars + line).properties(height=240).configure_view(strokeOpacity=0)
    st.altair_chart(chart, use_container_width=True)


def render_simulation_summary(result: SimulationRunSummary, score: ObservedStreamScore) -> None:
    """Render how the observed totals rank among the simulated streams."""

    with st.container(border=True):
        st.markdown("**Simulation**")
        barters = np.array([summary.total_barters for summary in result.results])
        fights = np.array([summary.total_fights for summary in result.results])
        cols = st.columns(3)
        cols[0].metric("Streams simulated", f"{result.total_streams:,}")
        cols[1].metric(
            "Streams with ≤ observed barters",
            f"{np.mean(barters <= score.results.total_barters):.2%}",
        )
        cols[2].metric(
            "Streams with ≤ observed fights",
            f"{np.mean(fights <= score.results.total_fights):.2%}",
        )
        st.caption(f"Simulated in {result.compute_seconds:.2f} seconds")
        render_frequency_chart(result.barter_table, "barters", "Barters")
        render_frequency_chart(result.fight_table, "blazes", "Blaze fights")


def apply_page_styling() -> None:
    """Inject CSS tweaks that style the Streamlit app."""

    st.set_page_config(page_title="Drop Luck Calculator", layout="centered")
    st.markdown(
        """
        <style>
        div[data-testid="stVerticalBlockBorderWrapper"] {
            border: 1px solid #e3e6eb;
            border-radius: 12px;
            padding: 1.25rem;
            background-color: #ffffff;
            box-shadow: 0 4px 10px rgba(15, 23, 42, 0.06);
            margin-bottom: 1.25rem;
        }
        </style>
        """,
        unsafe_allow_html=True,
    )


def main() -> None:
    apply_page_styling()
    ensure_session_state_defaults()
    st.title("Drop Luck Calculator")

    render_observation_inputs()
    score, error = compute_observed_score()
    if score is None:
        st.error(f"Cannot build the luck model: {error}")
        return
    render_score_card(score)

    with st.container(border=True):
        st.markdown("**Simulation settings**")
        cols = st.columns(2)
        cols[0].number_input(
            "Cycles",
            min_value=1,
            max_value=MAX_UI_CYCLES,
            step=500,
            key="simulation_cycles_input",
        )
        cols[1].number_input("Seed", min_value=0, step=1, key="simulation_seed_input")
        if st.button("Run simulation", type="primary"):
            run_simulation_from_ui()

    if st.session_state.simulation_error:
        st.error(f"Simulation failed: {st.session_state.simulation_error}")
    elif isinstance(st.session_state.simulation_result, SimulationRunSummary):
        render_simulation_summary(st.session_state.simulation_result, score)


if __name__ == "__main__":
    main()
