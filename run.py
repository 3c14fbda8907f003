# run.py — Painel de alimentação
# =============================================================================
# REGISTRO: alimentação manual com confirmações (antecipação / quantidade)
# GRADE: horários do viveiro (diária ou semanal) + desativação
# HISTÓRICO: tabela de registros + timeline horários x alimentações
# Datas/horas "DD/MM HH:MM" no fuso configurado
# =============================================================================

from __future__ import annotations

import logging
from datetime import date, datetime, time as dtime, timedelta, timezone
from typing import List, Optional

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from config.database import DATABASE_PATH
from config.settings import TIMEZONE

from aquafeed.domain.entities.feeding_log import FeedingLog
from aquafeed.domain.entities.feeding_schedule import (
    Actor, FeedingSchedule, expand_today, local_date, resolve_tz,
)
from aquafeed.domain.entities.pond import Pond, User
from aquafeed.domain.enums import FeedingReason, GuardState, RepeatType
from aquafeed.domain.exceptions import AquafeedError, ValidationError
from aquafeed.domain.use_cases.manage_schedule_use_case import (
    DeactivateScheduleUseCase, ScheduleInput, UpsertScheduleUseCase,
)
from aquafeed.infrastructure.container import build_dispatcher, build_feeding_session
from aquafeed.infrastructure.database.migrations import run_migrations
from aquafeed.infrastructure.database.sqlite_repositories import (
    SQLiteFeedingLogRepo, SQLitePondRepo, SQLiteScheduleRepo, SQLiteUserRepo,
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
st.set_page_config(page_title="Alimentação dos viveiros", layout="wide")

LOCAL_TZ = resolve_tz(TIMEZONE)
WEEKDAYS_PT = ["Dom", "Seg", "Ter", "Qua", "Qui", "Sex", "Sáb"]
REASON_PT = {FeedingReason.MANUAL: "Manual", FeedingReason.MISSED_SCHEDULE: "Horário perdido (auto)"}


@st.cache_resource
def _migrate() -> bool:
    run_migrations()
    return True


_migrate()

# =============================================================================
# ROTAS
# =============================================================================
ROUTES = ("feeding", "schedule", "history")
ROUTE_PT = {"feeding": "Registrar", "schedule": "Grade", "history": "Histórico"}
if "route" not in st.session_state:
    st.session_state.route = "feeding"


def navigate(to: str):
    st.session_state.route = to
    st.rerun()


# =============================================================================
# HELPERS
# =============================================================================
def fmt_ts(ts: Optional[datetime]) -> str:
    if ts is None:
        return "—"
    return ts.astimezone(LOCAL_TZ).strftime("%d/%m %H:%M")


def logs_dataframe(logs: List[FeedingLog]) -> pd.DataFrame:
    if not logs:
        return pd.DataFrame(columns=["Horário", "Ração (g)", "Origem", "Usuário"])
    return pd.DataFrame([
        {
            "Horário": fmt_ts(l.fed_at),
            "Ração (g)": l.feed_given_grams,
            "Origem": REASON_PT.get(l.reason, l.reason.value),
            "Usuário": l.user_display_name or l.user_email or l.user_id,
        }
        for l in logs
    ])


def timeline_figure(schedule: Optional[FeedingSchedule], logs: List[FeedingLog], days: int = 3) -> go.Figure:
    """Horários agendados (losangos) x alimentações registradas (círculos) nos últimos dias."""
    today = local_date(datetime.now(timezone.utc), TIMEZONE)
    slots: List[datetime] = []
    if schedule is not None and schedule.active:
        for d in range(days - 1, -1, -1):
            slots += expand_today(schedule, today - timedelta(days=d), TIMEZONE)

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=[s.astimezone(LOCAL_TZ) for s in slots], y=["Agendado"] * len(slots),
        mode="markers", name="Agendado", marker=dict(symbol="diamond", size=12, color="#0b7285"),
    ))
    start = datetime.combine(today - timedelta(days=days - 1), dtime.min, tzinfo=LOCAL_TZ)
    recent = [l for l in logs if l.fed_at >= start]
    fig.add_trace(go.Scatter(
        x=[l.fed_at.astimezone(LOCAL_TZ) for l in recent],
        y=["Registrado"] * len(recent),
        mode="markers", name="Registrado",
        marker=dict(size=11, color=["#f59f00" if l.auto_logged else "#2b8a3e" for l in recent]),
        text=[f"{l.feed_given_grams:g} g" for l in recent],
        hovertemplate="%{x|%d/%m %H:%M}<br>%{text}<extra></extra>",
    ))
    fig.update_layout(height=260, margin=dict(l=10, r=10, t=30, b=10), showlegend=False,
                      title="Horários x alimentações")
    return fig


def session_for(user: User):
    key = f"session_{user.id}"
    if key not in st.session_state:
        st.session_state[key] = build_feeding_session(user)
    return st.session_state[key]


# =============================================================================
# REGISTRO MANUAL
# =============================================================================
def page_feeding(user: User, pond: Pond):
    session = session_for(user)

    backfill = session.open(pond)
    if backfill.log is not None:
        st.warning(
            f"O horário das {fmt_ts(backfill.missed_slot)} não teve registro. "
            f"Lançamos automaticamente {backfill.log.feed_given_grams:g} g."
        )
    elif backfill.missed_slot is not None:
        st.info(f"Horário perdido às {fmt_ts(backfill.missed_slot)} (sem sugestão de ração para lançar).")

    suggestion = session.suggestion(pond)
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Peso médio (g)", f"{suggestion.abw:g}" if suggestion.abw else "—")
    c2.metric("Peixes vivos (est.)", suggestion.estimated_alive if suggestion.estimated_alive is not None else "—")
    c3.metric("Taxa (%/dia)", f"{suggestion.rate_percent:g}" if suggestion.rate_percent else "—")
    c4.metric("Por alimentação (g)", suggestion.per_feeding_grams if suggestion.available else "—")

    guard_key = f"guard_{pond.id}"
    decision_key = f"decision_{pond.id}"

    now_local = datetime.now(LOCAL_TZ)
    with st.form(f"feed_form_{pond.id}"):
        col_d, col_t, col_g = st.columns(3)
        fed_day = col_d.date_input("Data", value=now_local.date(), max_value=now_local.date())
        fed_time = col_t.time_input("Hora", value=now_local.time().replace(second=0, microsecond=0))
        grams = col_g.number_input("Ração fornecida (g)", min_value=0.0, step=10.0,
                                   value=float(suggestion.per_feeding_grams or 0))
        submitted = st.form_submit_button("Registrar alimentação", use_container_width=True)

    if submitted:
        fed_at = datetime.combine(fed_day, fed_time, tzinfo=LOCAL_TZ).astimezone(timezone.utc)
        guard = session.guard(pond)
        st.session_state[guard_key] = guard
        try:
            st.session_state[decision_key] = guard.submit(fed_at, grams)
        except (AquafeedError, ValueError) as e:
            st.session_state[decision_key] = None
            st.error(str(e))

    guard = st.session_state.get(guard_key)
    decision = st.session_state.get(decision_key)
    if guard is not None and decision is not None:
        if decision.state is GuardState.DONE:
            st.success(decision.message)
        elif decision.state in (GuardState.BLOCKED, GuardState.PENDING_TOO_EARLY_REJECT):
            st.error(decision.message)
        elif decision.needs_confirmation:
            st.warning(decision.message)
            yes, no = st.columns(2)
            if yes.button("Confirmar", key=f"confirm_{pond.id}", use_container_width=True):
                st.session_state[decision_key] = guard.confirm()
                st.rerun()
            if no.button("Cancelar", key=f"cancel_{pond.id}", use_container_width=True):
                st.session_state[decision_key] = guard.cancel()
                st.rerun()


# =============================================================================
# GRADE
# =============================================================================
def page_schedule(user: User, pond: Pond):
    repo = SQLiteScheduleRepo()
    try:
        current = repo.get_by_pond(pond.id)
    except ValidationError as e:
        st.error(f"Grade armazenada inválida: {e}")
        current = None

    if current is not None:
        status = "ativa" if current.active else "desativada"
        st.caption(f"Grade {status} · horários: {', '.join(current.time_labels)}")

    times_per_day = st.number_input("Alimentações por dia", min_value=1, max_value=12,
                                    value=current.times_per_day if current else max(1, pond.feeding_frequency or 2))
    defaults = current.time_labels if current else []
    times: List[str] = []
    cols = st.columns(min(int(times_per_day), 4))
    for i in range(int(times_per_day)):
        default = defaults[i] if i < len(defaults) else "07:00"
        times.append(cols[i % len(cols)].text_input(f"Horário {i + 1}", value=default, key=f"t_{pond.id}_{i}"))

    repeat = st.radio("Repetição", options=[RepeatType.DAILY, RepeatType.WEEKLY],
                      format_func=lambda r: "Diária" if r is RepeatType.DAILY else "Semanal",
                      index=0 if not current or current.repeat_type is RepeatType.DAILY else 1, horizontal=True)
    days: List[int] = []
    if repeat is RepeatType.WEEKLY:
        chosen = st.multiselect("Dias", options=list(range(7)), format_func=lambda d: WEEKDAYS_PT[d],
                                default=sorted(current.selected_days) if current else [])
        days = list(chosen)

    col_s, col_e = st.columns(2)
    start = col_s.date_input("Início", value=current.start_date if current else date.today())
    has_end = col_e.checkbox("Definir data final", value=bool(current and current.end_date))
    end = col_e.date_input("Fim", value=(current.end_date if current and current.end_date else start)) if has_end else None

    save, deactivate = st.columns(2)
    actor = Actor(user_id=user.id, email=user.email, display_name=user.display_name)
    if save.button("Salvar grade", use_container_width=True):
        data = ScheduleInput(
            pond_id=pond.id, pond_name=pond.name, times_per_day=int(times_per_day),
            feeding_times=[t.strip() for t in times], start_date=start,
            repeat_type=repeat, selected_days=frozenset(days), end_date=end,
        )
        try:
            UpsertScheduleUseCase(repo).execute(actor, data)
            st.success("Grade salva.")
        except ValidationError as e:
            st.error(str(e))
    if deactivate.button("Desativar grade", use_container_width=True, disabled=current is None):
        DeactivateScheduleUseCase(repo).execute(pond.id)
        st.success("Grade desativada.")


# =============================================================================
# HISTÓRICO
# =============================================================================
def page_history(pond: Pond):
    logs = list(SQLiteFeedingLogRepo().list_by_pond(pond.id))
    try:
        schedule = SQLiteScheduleRepo().get_by_pond(pond.id)
    except ValidationError:
        schedule = None
    st.plotly_chart(timeline_figure(schedule, logs), use_container_width=True)
    st.dataframe(logs_dataframe(logs), use_container_width=True, hide_index=True)


# =============================================================================
# SIDEBAR
# =============================================================================
st.sidebar.title("Alimentação")
st.sidebar.caption(f"Banco: {DATABASE_PATH} · Fuso: {TIMEZONE}")

users = SQLiteUserRepo().list_approved()
if not users:
    st.info("Nenhum usuário aprovado cadastrado.")
    st.stop()

user = st.sidebar.selectbox("Usuário", users, format_func=lambda u: u.display_name or u.email)
ponds = SQLitePondRepo().list_for_user(user.id)
if not ponds:
    st.info("Nenhum viveiro vinculado a este usuário.")
    st.stop()
pond = st.sidebar.selectbox("Viveiro", ponds, format_func=lambda p: p.name)

for r in ROUTES:
    if st.sidebar.button(ROUTE_PT[r], key=f"nav_{r}", use_container_width=True,
                         type="primary" if st.session_state.route == r else "secondary"):
        navigate(r)

if st.sidebar.button("Enviar lembretes agora", use_container_width=True):
    result = build_dispatcher().execute()
    st.sidebar.json(result.to_dict())

# =============================================================================
# DISPATCHER
# =============================================================================
st.header(f"{pond.name} · {ROUTE_PT[st.session_state.route]}")
route = st.session_state.route
if route == "schedule":
    page_schedule(user, pond)
elif route == "history":
    page_history(pond)
else:
    page_feeding(user, pond)
