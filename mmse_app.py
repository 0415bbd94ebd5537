"""
MMSE Cognitive Assessment - Streamlit Web App
=============================================
Run with:  streamlit run mmse_app.py
Requires:  streamlit, anthropic, numpy
Secret (optional):  ANTHROPIC_API_KEY = "sk-ant-..."  (enables the AI summary)
"""

import logging
import time
from pathlib import Path

import streamlit as st

from mmse.classifier import make_classifier
from mmse.config import load_config
from mmse.errors import ConfigError, ExaminationError
from mmse.narrative import get_client, summarize
from mmse.questions import DRAWING, MULTIPLE_CHOICE, all_questions
from mmse.scoring import SEVERITIES, display_status, response_time_rows
from mmse.session import GENDERS, PENDING, ExaminationSession, PatientInfo, Status

logger = logging.getLogger("mmse_app")

API_KEY_STATE = "anthropic_api_key"

# ─────────────────────────────────────────────────────────────────────────────
# PAGE CONFIG
# ─────────────────────────────────────────────────────────────────────────────
st.set_page_config(
    page_title="MMSE Cognitive Assessment",
    page_icon="🧠",
    layout="centered",
    initial_sidebar_state="expanded",
)

# ─────────────────────────────────────────────────────────────────────────────
# CONFIG & SHARED RESOURCES
# ─────────────────────────────────────────────────────────────────────────────
def _secrets():
    # st.secrets raises when no secrets.toml exists; that just means "not set".
    try:
        return dict(st.secrets)
    except Exception:
        return {}


@st.cache_resource
def get_config():
    cfg = load_config(_secrets())
    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return cfg


@st.cache_resource
def get_classifier(model_path, timeout):
    """Build the classifier once; the model load is attempted lazily."""
    return make_classifier(model_path, timeout=timeout)


@st.cache_resource
def get_narrative_client(api_key):
    return get_client(api_key)


def effective_config():
    """Configured settings with any key entered in the UI layered on top."""
    return get_config().with_api_key(st.session_state.get(API_KEY_STATE))

# ─────────────────────────────────────────────────────────────────────────────
# SESSION STATE
# ─────────────────────────────────────────────────────────────────────────────
def init_session():
    cfg = get_config()
    defaults = {
        "screen":      "home",
        "exam":        None,
        "shown_qid":   None,
        "shown_at":    None,
        "narrative":   None,
        "form_error":  None,
        API_KEY_STATE: "",
    }
    for k, v in defaults.items():
        if k not in st.session_state:
            st.session_state[k] = v
    if st.session_state.exam is None:
        st.session_state.exam = ExaminationSession(
            all_questions(), classifier=get_classifier(cfg.model_path, cfg.model_timeout)
        )


def reset_test():
    st.session_state.exam.reset()
    for k in ["shown_qid", "shown_at", "narrative", "form_error"]:
        st.session_state.pop(k, None)
    for k in [k for k in st.session_state if str(k).startswith("text_")]:
        st.session_state.pop(k, None)
    st.session_state.screen = "home"


def _mark_shown(qid):
    if st.session_state.get("shown_qid") != qid:
        st.session_state.shown_qid = qid
        st.session_state.shown_at  = time.time()


def _elapsed_ms():
    started = st.session_state.get("shown_at") or time.time()
    return max(0, int((time.time() - started) * 1000))


def _fmt_secs(ms):
    return f"{ms / 1000:.1f} sec"

# ─────────────────────────────────────────────────────────────────────────────
# CSS
# ─────────────────────────────────────────────────────────────────────────────
CSS = """
<style>
@import url('https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600;700;900&display=swap');
html, body, [class*="css"] { font-family: 'Inter', sans-serif; }
section[data-testid="stSidebar"] { border-right: 1px solid #e3e6ef; }
div[data-testid="stProgress"] > div > div { background-color: #3b6bfa !important; }
[data-testid="stMetricValue"] { font-size: 1.8rem !important; font-weight: 800 !important; }
.badge {
    display: inline-block; border-radius: 6px;
    padding: 3px 10px; font-size: 12px; font-weight: 700; margin-right: 6px;
}
.severity { font-size: 1.4rem; font-weight: 800; }
</style>
"""

# ─────────────────────────────────────────────────────────────────────────────
# SCREEN — HOME (landing + patient information)
# ─────────────────────────────────────────────────────────────────────────────
def screen_home():
    st.markdown(CSS, unsafe_allow_html=True)
    exam = st.session_state.exam
    categories = {q.category for q in exam.questions}

    st.markdown("# 🧠 Mini-Mental State Examination")
    st.markdown("*A digital MMSE screening with instant scoring and optional AI-written summary.*")
    st.divider()

    c1, c2, c3 = st.columns(3)
    c1.metric("Total points", exam.max_possible_score)
    c2.metric("Questions", len(exam.questions))
    c3.metric("Cognitive domains", len(categories))

    st.info(
        "**How it works:** Answer each question by choosing an option or typing the "
        "patient's response. Free-text answers are scored automatically. At the end you "
        "get a category breakdown, response-time analysis and an overall interpretation."
    )

    st.markdown("### 👤 Patient Information")
    with st.form("patient_form"):
        name   = st.text_input("Patient name", placeholder="Full name")
        age    = st.text_input("Patient age", placeholder="Age in years")
        gender = st.radio("Gender", GENDERS, index=None, horizontal=True)
        go = st.form_submit_button("Begin Assessment", type="primary", use_container_width=True)

    if go:
        info = PatientInfo(
            name=name.strip(),
            age="".join(ch for ch in age if ch.isdigit()),
            gender=gender or "",
        )
        try:
            exam.start(info)
        except ExaminationError as exc:
            st.error(str(exc))
            return
        st.session_state.narrative = None
        st.session_state.screen    = "exam"
        st.rerun()

    st.caption(
        "This tool is for screening purposes only and is not a diagnostic instrument. "
        "Always consult healthcare professionals for proper evaluation."
    )

# ─────────────────────────────────────────────────────────────────────────────
# SCREEN — EXAM
# ─────────────────────────────────────────────────────────────────────────────
def _answer_controls(exam, q):
    record = exam.answers.get(q.id)

    if q.response_kind == MULTIPLE_CHOICE:
        for i, opt in enumerate(q.options):
            chosen = record is not None and record.raw_answer == opt.label
            label  = f"{'🔘' if chosen else '⚪'} {opt.label}"
            if st.button(label, key=f"opt_{q.id}_{i}", use_container_width=True):
                exam.record_answer(q.id, opt.score, opt.label, _elapsed_ms())
                st.rerun()

    elif q.response_kind == DRAWING:
        points = st.number_input("Points awarded by the examiner", 0, q.max_score,
                                 value=record.score if record else 0, key=f"draw_{q.id}")
        if st.button("Record Score", use_container_width=True):
            exam.record_answer(q.id, int(points), f"{points} points", _elapsed_ms())
            st.rerun()

    else:
        key = f"text_{q.id}"
        if key not in st.session_state:
            st.session_state[key] = record.raw_answer if record else ""
        text = st.text_area("Response", key=key, height=110,
                            placeholder="Enter the patient's answer here…")
        if st.button("Submit Answer", use_container_width=True):
            if not text.strip():
                st.warning("Please enter the patient's answer before submitting.")
            else:
                exam.record_answer(q.id, PENDING, text.strip(), _elapsed_ms())
                st.rerun()

    record = exam.answers.get(q.id)
    if record is not None:
        st.success(
            f"Answer recorded · **{record.score}/{q.max_score}** points · "
            f"{_fmt_secs(record.response_time_ms)}"
        )


def screen_exam():
    st.markdown(CSS, unsafe_allow_html=True)
    exam = st.session_state.exam
    q    = exam.current_question
    idx  = exam.current_index
    n    = len(exam.questions)
    if q is None:
        st.error("The question catalog is empty.")
        return
    _mark_shown(q.id)

    # ── Top bar ───────────────────────────────────────────────────────────
    st.progress((idx + 1) / n)
    st.caption(f"Question {idx+1} of {n}  ·  Current score: **{exam.total_score}**")
    st.divider()

    st.markdown(
        f'<span class="badge" style="background:#3b6bfa22;color:#3b6bfa;'
        f'border:1px solid #3b6bfa55;">{q.category}</span>'
        f'<span class="badge" style="background:#eef0f6;color:#777;">'
        f'{q.max_score} pt{"s" if q.max_score != 1 else ""}</span>',
        unsafe_allow_html=True,
    )

    # ── Question ──────────────────────────────────────────────────────────
    st.markdown(f"### {q.text}")
    if q.instructions:
        st.caption(q.instructions)
    if q.image and Path(q.image).exists():
        st.image(q.image, width=260)
    st.write("")

    _answer_controls(exam, q)

    # ── Navigation ────────────────────────────────────────────────────────
    st.divider()
    nl, nr = st.columns(2)

    with nl:
        if st.button("← Previous", use_container_width=True, disabled=idx == 0):
            exam.retreat()
            st.rerun()

    with nr:
        label = "🏁 Complete Assessment" if exam.is_last_question else "Next →"
        if st.button(label, type="primary", use_container_width=True,
                     disabled=not exam.is_current_answered):
            if exam.is_last_question:
                with st.spinner("Analyzing responses…"):
                    if exam.complete() is None:
                        logger.warning("completed without classifier result")
                st.session_state.screen = "results"
            else:
                exam.advance()
            st.rerun()

    # ── Sidebar navigator ─────────────────────────────────────────────────
    with st.sidebar:
        st.markdown(f"### 👤 {exam.patient_info.name}")
        st.caption(f"Age {exam.patient_info.age} · {exam.patient_info.gender}")
        st.markdown("### 📋 Progress")
        cols = st.columns(5)
        for i, item in enumerate(exam.questions):
            c = cols[i % 5]
            if i == idx:
                c.markdown(f"**{i+1}**")
            elif item.id in exam.answers:
                c.markdown("✅")
            else:
                c.markdown(f"_{i+1}_")
        st.divider()
        st.caption("✅ Answered  **n** Current")
        st.divider()
        if st.button("🏠 Home", use_container_width=True):
            reset_test()
            st.rerun()

# ─────────────────────────────────────────────────────────────────────────────
# SCREEN — RESULTS
# ─────────────────────────────────────────────────────────────────────────────
def _narrative_section(exam, analysis):
    st.markdown("### 🤖 AI Summary")
    cfg = effective_config()

    with st.expander("🔑 Anthropic API key", expanded=not cfg.has_api_key):
        key = st.text_input("API key", type="password", placeholder="sk-ant-...",
                            help="Kept only for this browser session.")
        if st.button("Save API Key"):
            if not key.strip():
                st.error("Please enter a valid API key.")
            else:
                st.session_state[API_KEY_STATE] = key.strip()
                logger.info("API key set for this session")
                st.session_state.narrative = None
                st.success("API key saved for this session.")
                st.rerun()

    summary = st.session_state.get("narrative")
    label   = "🔄 Retry summary" if summary is not None and not summary.ok else "✨ Generate summary"
    if st.button(label, use_container_width=True):
        client = get_narrative_client(cfg.api_key) if cfg.has_api_key else None
        with st.spinner("Writing summary…"):
            summary = summarize(analysis, exam.patient_info, cfg, client=client)
        st.session_state.narrative = summary

    if summary is None:
        return
    if not summary.ok:
        st.warning(summary.analysis)
        return
    st.write(summary.analysis)
    if summary.recommendations:
        st.markdown("**Recommended next steps**")
        for rec in summary.recommendations:
            st.markdown(f"- {rec}")


def screen_results():
    st.markdown(CSS, unsafe_allow_html=True)
    exam = st.session_state.exam
    if exam.status != Status.COMPLETED:
        st.session_state.screen = "home"
        st.rerun()

    analysis = exam.score_analysis()
    status   = display_status(analysis, exam.analysis_result)
    sev_info = SEVERITIES.get(status["severity"], SEVERITIES[analysis.severity])

    st.markdown("# 📊 Assessment Results")
    st.caption(f"Patient: **{exam.patient_info.name}** · Age {exam.patient_info.age} · "
               f"{exam.patient_info.gender}")

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Score",      f"{analysis.total_score}/{analysis.max_possible_score}")
    c2.metric("Percentage", f"{round(analysis.percentage_score)}%")
    c3.metric("Status",     status["severity"])
    c4.metric("Confidence", f"{round(status['confidence'] * 100)}%" if status["confidence"] is not None else "—")

    st.markdown(
        f'<div class="severity" style="color:{status["color"]};">'
        f'{sev_info["emoji"]} {status["severity"]} Cognitive Status</div>',
        unsafe_allow_html=True,
    )
    st.write(status["interpretation"])
    st.progress(analysis.percentage_score / 100, text=f"{round(analysis.percentage_score)}% of maximum score")

    if exam.analysis_result is None:
        st.info("Enhanced analysis is unavailable. Showing the score-based interpretation.")
    elif status["severity"] != analysis.severity:
        st.caption(f"Score-based interpretation: **{analysis.severity}** · {analysis.interpretation}")

    st.divider()
    st.markdown("### 📚 By Category")
    for category, data in analysis.category_breakdown.items():
        pct = round(data["percentage"])
        st.progress(data["percentage"] / 100,
                    text=f"{category} — {data['score']}/{data['max_score']} ({pct}%)")

    if exam.analysis_result is not None:
        st.divider()
        st.markdown("### 🧩 Cognitive Domain Analysis")
        scores = exam.analysis_result.category_scores
        st.bar_chart(
            {"domain": list(scores), "strength (%)": [round(v * 100) for v in scores.values()]},
            x="domain", y="strength (%)",
        )
        st.caption(f"Source: {exam.analysis_result.source} classifier")

    rows = response_time_rows(exam.answers, exam.questions)
    if rows:
        st.divider()
        st.markdown("### ⏱ Response Times")
        st.bar_chart(
            {"question": [f"Q{r['id']} {r['category']}" for r in rows],
             "seconds":  [round(r["seconds"], 1) for r in rows]},
            x="question", y="seconds",
        )

    st.divider()
    st.markdown("### 📝 Recommendations")
    for rec in sev_info["recommendations"]:
        st.markdown(f"- {rec}")
    st.caption("This information is for reference only and should not replace professional medical advice.")

    st.divider()
    _narrative_section(exam, analysis)

    st.divider()
    st.markdown("### 🔍 Review Answers")
    for q in exam.questions:
        rec  = exam.answers.get(q.id)
        icon = "⬜" if rec is None else ("✅" if rec.score == q.max_score else "⚠️")
        with st.expander(f"{icon} Q{q.id} · {q.category}"):
            st.markdown(f"**{q.text}**")
            if rec is None:
                st.caption("Not answered (counts as 0 points).")
            else:
                st.write(f"Answer: {rec.raw_answer}")
                st.caption(f"{rec.score}/{q.max_score} points · {_fmt_secs(rec.response_time_ms)}")

    st.divider()
    if st.button("🔄 New Assessment", type="primary", use_container_width=True):
        reset_test()
        st.rerun()

# ─────────────────────────────────────────────────────────────────────────────
# MAIN
# ─────────────────────────────────────────────────────────────────────────────
def main():
    try:
        get_config()
    except ConfigError as exc:
        st.error(f"⚙️ **Configuration error:** {exc}")
        st.stop()

    init_session()
    s = st.session_state.screen
    if   s == "home":    screen_home()
    elif s == "exam":    screen_exam()
    elif s == "results": screen_results()
    else:
        st.error(f"Unknown screen: {s}")
        reset_test()

if __name__ == "__main__":
    main()
