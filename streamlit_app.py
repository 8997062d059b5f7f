import logging
from datetime import datetime

import altair as alt
import pandas as pd
import streamlit as st
from streamlit.errors import StreamlitSecretNotFoundError

from app.categories import CATEGORIES, Category
from app.config import ConfigError, load_settings
from app.db import PersistenceError, create_user, get_user, init_db
from app.exporters import build_pdf_report, dataframe_to_csv_bytes, measurements_to_frame
from app.formatting import HEBREW
from app.grid import (
    build_grid,
    filter_by_range,
    is_future_date,
    merge_date_with_current_time,
    next_week_offset,
    week_window,
)
from app.logging_config import configure_logging
from app.models import Measurement
from app.ocr import OcrError, run_ocr_on_image
from app.ranges import DEFAULT_RANGES, GlucoseRange, Status, classify
from app.report_range import DEFAULT_SELECTION, SELECTION_LABELS, ReportSelection, resolve_report_range
from app.security import check_password, hash_password, new_salt, record_cipher
from app.store import MeasurementStore
from app.validation import parse_glucose_input, validate_email, validate_glucose_value, validate_password

st.set_page_config(page_title="SugarMama · מעקב סוכרת הריונית", layout="wide")

logger = logging.getLogger("app.ui")

STATUS_COLORS = {
    Status.IN_RANGE: "#16a34a",
    Status.ABOVE_RANGE: "#dc2626",
    Status.BELOW_RANGE: "#2563eb",
}


def read_secrets() -> dict:
    try:
        return dict(st.secrets)
    except StreamlitSecretNotFoundError:
        return {}


try:
    settings = load_settings(read_secrets())
except ConfigError as exc:
    st.error(f"שגיאת הגדרות: {exc}")
    st.stop()

configure_logging(settings.log_level)
LOCAL_TZ = settings.timezone

try:
    init_db(settings.db_path)
except PersistenceError:
    logger.exception("Database initialisation failed")
    st.error("לא ניתן לפתוח את מסד הנתונים.")
    st.stop()


def now() -> datetime:
    return datetime.now(LOCAL_TZ)


def sign_in(email: str, password: str, salt: str) -> None:
    fernet = record_cipher(password, salt, settings.pepper)
    st.session_state["store"] = MeasurementStore.load(email, fernet, db_path=settings.db_path)
    st.session_state["email"] = email
    st.session_state["week_offset"] = 0


def sign_out() -> None:
    for key in ("store", "email", "week_offset", "add_context", "pending_delete", "ocr_hint", "edit_saved"):
        st.session_state.pop(key, None)


def ensure_authentication() -> None:
    if st.session_state.get("store") is not None:
        return

    st.title("SugarMama")
    st.caption("מעקב סוכרת הריונית: רושמות כל מדידה, רואות אם היא בטווח ומייצאות PDF לצוות המטפל.")

    tab_login, tab_create = st.tabs(["כניסה", "הרשמה"])

    with tab_login:
        with st.form("login_form"):
            email = st.text_input("אימייל").strip().lower()
            password = st.text_input("סיסמה", type="password")
            submitted = st.form_submit_button("כניסה")

        if submitted:
            user = get_user(email, db_path=settings.db_path)
            if not user or not check_password(password, user["password_salt"], user["password_hash"]):
                st.error("האימייל או הסיסמה שגויים.")
                st.stop()
            try:
                sign_in(email, password, user["password_salt"])
            except PersistenceError:
                logger.exception("Loading measurements failed")
                st.error("טעינת המדידות נכשלה. נסי שוב.")
                st.stop()
            st.rerun()

    with tab_create:
        with st.form("signup_form"):
            email = st.text_input("אימייל", key="signup_email").strip().lower()
            password = st.text_input("סיסמה", type="password", key="signup_password")
            password_confirm = st.text_input("אימות סיסמה", type="password")
            created = st.form_submit_button("יצירת חשבון")

        if created:
            for ok, message in (validate_email(email), validate_password(password)):
                if not ok:
                    st.error(message)
                    st.stop()
            if password != password_confirm:
                st.error("הסיסמאות אינן תואמות.")
                st.stop()
            if get_user(email, db_path=settings.db_path):
                st.error("כבר קיים חשבון עם האימייל הזה.")
                st.stop()

            salt = new_salt()
            try:
                create_user(email, salt, hash_password(password, salt), db_path=settings.db_path)
                sign_in(email, password, salt)
            except PersistenceError:
                logger.exception("Sign-up failed")
                st.error("יצירת החשבון נכשלה. נסי שוב.")
                st.stop()
            st.rerun()
    st.stop()


def open_add_form(category: Category, day: datetime | None = None, lock_category: bool = False) -> None:
    st.session_state["add_context"] = {
        "category": category.value,
        "timestamp": merge_date_with_current_time(day or now(), now()),
        "lock": lock_category,
    }


def render_cell(measurements: list[Measurement], category: Category, row_date: datetime, row_key: str) -> None:
    future = is_future_date(row_date, now())
    if not measurements:
        st.caption("אין מדידות")
    for m in measurements:
        time_label = HEBREW.time_label(m.instant.astimezone(LOCAL_TZ))
        color = STATUS_COLORS[m.status]
        st.markdown(
            f"**{m.value} {m.unit}** · {time_label}  \n"
            f"<span style='color:{color}'>{HEBREW.status_label(m.status)}</span>",
            unsafe_allow_html=True,
        )
        if st.button("מחיקה 🗑️", key=f"del-{m.id}"):
            st.session_state["pending_delete"] = m.id
            st.rerun()
    if st.button("הוספת ערך", key=f"add-{row_key}-{category.name}", disabled=future):
        open_add_form(category, row_date, lock_category=True)
        st.rerun()


def render_add_form(store: MeasurementStore) -> None:
    context = st.session_state.get("add_context")
    if context is None:
        return

    st.markdown("#### הוספת מדידה")
    category = Category(context["category"])
    if context["lock"]:
        st.text_input("קטגוריה", value=category.value, disabled=True, key="add_category_locked")
        st.caption("הקטגוריה ננעלת לפי התא שבחרת.")
    else:
        category = st.selectbox(
            "קטגוריה",
            list(CATEGORIES),
            index=list(CATEGORIES).index(category),
            format_func=HEBREW.category_label,
            key="add_category",
        )

    if "ocr_prefill" in st.session_state:
        st.session_state["value_input"] = st.session_state.pop("ocr_prefill")
    raw_value = st.text_input("ערך הגלוקוז (mg/dL)", key="value_input", placeholder="לדוגמה 104")

    photo = st.file_uploader("סריקת ערך מתמונה", type=["png", "jpg", "jpeg", "webp"])
    if photo is not None and st.button("סריקה"):
        try:
            result = run_ocr_on_image(photo.getvalue())
        except OcrError as exc:
            st.error(str(exc))
        else:
            if result.value is not None:
                st.session_state["ocr_prefill"] = str(result.value)
                st.session_state["ocr_hint"] = f"הערך שזוהה: {result.value}"
            elif result.raw_text.strip():
                st.session_state["ocr_hint"] = f"טקסט מזוהה: {result.raw_text.strip()}"
            else:
                st.session_state["ocr_hint"] = "לא הצלחתי לזהות מספר ברור. נסי תמונה חדה יותר."
            st.rerun()
    if st.session_state.get("ocr_hint"):
        st.info(st.session_state["ocr_hint"])

    default_ts = context["timestamp"]
    col_date, col_time = st.columns(2)
    picked_date = col_date.date_input("תאריך", value=default_ts.date(), key="add_date")
    picked_time = col_time.time_input("שעה", value=default_ts.time().replace(second=0, microsecond=0), key="add_time")

    value = parse_glucose_input(raw_value)
    if value is None:
        st.caption("הזיני ערך כדי לראות אם הוא בטווח, מעל או מתחת.")
    else:
        status = classify(value, category, store.thresholds)
        st.markdown(
            f"סטטוס: <span style='color:{STATUS_COLORS[status]}'>{HEBREW.status_label(status)}</span>",
            unsafe_allow_html=True,
        )
        st.caption("החיווי מותאם לפי הטווחים שהגדרת בהגדרות.")

    col_save, col_cancel = st.columns(2)
    if col_cancel.button("ביטול", key="cancel-add"):
        st.session_state.pop("add_context", None)
        st.session_state.pop("ocr_hint", None)
        st.rerun()
    if col_save.button("שמירה", type="primary", disabled=value is None):
        valid, message = validate_glucose_value(value)
        if not valid:
            st.error(message)
            return
        timestamp = datetime.combine(picked_date, picked_time, tzinfo=LOCAL_TZ)
        try:
            store.add(value, category, timestamp)
        except PersistenceError:
            logger.exception("Saving measurement failed")
            st.error("שמירת המדידה נכשלה. נסי שוב.")
            return
        st.session_state.pop("add_context", None)
        st.session_state.pop("ocr_hint", None)
        st.session_state.pop("value_input", None)
        st.rerun()


def render_edit_form(store: MeasurementStore, visible: list[Measurement]) -> None:
    if not visible:
        return
    with st.expander("עריכת מדידה"):
        options = {
            f"{m.instant.astimezone(LOCAL_TZ):%d.%m %H:%M} · {m.category.value} · {m.value} {m.unit}": m.id
            for m in visible
        }
        selected_label = st.selectbox("בחירת מדידה", list(options.keys()))
        selected = store.get(options[selected_label])
        if selected is None:
            return
        local_ts = selected.instant.astimezone(LOCAL_TZ)

        with st.form("edit_measurement_form"):
            edit_value = st.number_input("ערך (mg/dL)", min_value=0, max_value=1000, value=selected.value)
            edit_category = st.selectbox(
                "קטגוריה",
                list(CATEGORIES),
                index=list(CATEGORIES).index(selected.category),
                format_func=HEBREW.category_label,
                key="edit_category",
            )
            col_date, col_time = st.columns(2)
            edit_date = col_date.date_input("תאריך", value=local_ts.date(), key="edit_date")
            edit_time = col_time.time_input("שעה", value=local_ts.time().replace(second=0, microsecond=0), key="edit_time")
            submitted = st.form_submit_button("שמירת שינויים")

        if st.session_state.pop("edit_saved", False):
            st.success("המדידה עודכנה.")

        if submitted:
            valid, message = validate_glucose_value(int(edit_value))
            if not valid:
                st.error(message)
                return
            timestamp = datetime.combine(edit_date, edit_time, tzinfo=LOCAL_TZ)
            try:
                store.update(selected.id, int(edit_value), edit_category, timestamp)
            except PersistenceError:
                logger.exception("Updating measurement failed")
                st.error("עדכון המדידה נכשל. נסי שוב.")
                return
            st.session_state["edit_saved"] = True
            st.rerun()


def render_pending_delete(store: MeasurementStore) -> None:
    pending = st.session_state.get("pending_delete")
    if pending is None:
        return
    measurement = store.get(pending)
    if measurement is None:
        st.session_state.pop("pending_delete", None)
        return
    st.warning(f"האם למחוק את המדידה ({measurement.value} {measurement.unit})?")
    col_yes, col_no = st.columns(2)
    if col_yes.button("מחיקה", type="primary"):
        try:
            store.delete(pending)
        except PersistenceError:
            logger.exception("Deleting measurement failed")
            st.error("המחיקה נכשלה. נסי שוב.")
            return
        st.session_state.pop("pending_delete", None)
        st.rerun()
    if col_no.button("ביטול", key="cancel-delete"):
        st.session_state.pop("pending_delete", None)
        st.rerun()


def render_week_chart(visible: list[Measurement]) -> None:
    if not visible:
        return
    chart_df = pd.DataFrame(
        {
            "recorded_at": [m.instant.astimezone(LOCAL_TZ).replace(tzinfo=None) for m in visible],
            "value": [m.value for m in visible],
            "category": [m.category.value for m in visible],
            "status": [HEBREW.status_label(m.status) for m in visible],
        }
    )
    status_scale = alt.Scale(
        domain=[HEBREW.status_label(s) for s in STATUS_COLORS],
        range=list(STATUS_COLORS.values()),
    )
    points = (
        alt.Chart(chart_df)
        .mark_circle(size=90)
        .encode(
            x=alt.X("recorded_at:T", title="זמן"),
            y=alt.Y("value:Q", title="mg/dL"),
            color=alt.Color("status:N", scale=status_scale, title="סטטוס"),
            tooltip=["recorded_at:T", "category:N", "value:Q", "status:N"],
        )
    )
    st.altair_chart(points.properties(height=260), use_container_width=True)


ensure_authentication()
store: MeasurementStore = st.session_state["store"]

st.sidebar.header("SugarMama")
st.sidebar.caption(st.session_state["email"])
if st.sidebar.button("התנתקות"):
    sign_out()
    st.rerun()

st.sidebar.header("טווחי יעד")
st.sidebar.caption("אפשר רק להדק את הטווחים ביחס לברירת המחדל, לא להרחיב אותם.")
with st.sidebar.form("ranges_form"):
    edited: dict[Category, GlucoseRange] = {}
    for category in CATEGORIES:
        current = store.thresholds.get(category, DEFAULT_RANGES[category])
        st.markdown(f"**{category.value}**")
        col_low, col_high = st.columns(2)
        lower = col_low.number_input("מינימום", value=current.lower, step=1, key=f"low-{category.name}")
        upper = col_high.number_input("מקסימום", value=current.upper, step=1, key=f"high-{category.name}")
        edited[category] = GlucoseRange(lower=int(lower), upper=int(upper))
    ranges_submitted = st.form_submit_button("שמירת טווחים")

if ranges_submitted:
    try:
        ok, message = store.set_thresholds(edited)
    except PersistenceError:
        logger.exception("Saving range settings failed")
        st.sidebar.error("שמירת הטווחים נכשלה.")
    else:
        if ok:
            st.sidebar.success("הטווחים נשמרו.")
        else:
            st.sidebar.error(message)

tabs = st.tabs(["בית", "המדידות שלי", "ייצוא PDF", "איך למדוד"])

with tabs[0]:
    st.subheader("מחליפות את הדף המודפס ושומרות כל מדידה.")
    st.markdown(
        "רושמות את הסוכר לפי קטגוריה (צום, אחרי ארוחות), רואות אם הערך בטווח, ומייצאות PDF לצוות המטפל."
    )
    st.metric("סה״כ מדידות", len(store.measurements))

with tabs[1]:
    st.subheader("המדידות שלי")
    st.caption("מציג את המדידות לפי שבוע נבחר (ראשון עד שבת). אפשר להוסיף מדידה בלחיצה על תא בקטגוריה הרלוונטית.")

    if st.button("הוספת מדידה", type="primary"):
        open_add_form(CATEGORIES[0])
        st.rerun()
    render_add_form(store)
    render_pending_delete(store)

    offset = st.session_state.get("week_offset", 0)
    window = week_window(now(), offset)
    col_prev, col_badge, col_next = st.columns([1, 2, 1])
    if col_prev.button("→ שבוע קודם"):
        st.session_state["week_offset"] = offset - 1
        st.rerun()
    col_badge.markdown(f"**{HEBREW.week_badge(window.start.date(), window.end.date())}**")
    if col_next.button("שבוע הבא ←", disabled=offset == 0):
        st.session_state["week_offset"] = next_week_offset(offset)
        st.rerun()

    visible = filter_by_range(store.measurements, window.start, window.last_instant)
    rows = build_grid(visible, CATEGORIES, window.start, window.end, HEBREW)

    header = st.columns(len(CATEGORIES) + 1)
    header[0].markdown("**תאריך**")
    for column, category in zip(header[1:], CATEGORIES):
        column.markdown(f"**{category.value}**")

    for row in rows:
        columns = st.columns(len(CATEGORIES) + 1)
        columns[0].markdown(f"**{row.display_label}**  \n{row.weekday_label}")
        for column, category in zip(columns[1:], CATEGORIES):
            with column:
                render_cell(row.cells[category], category, row.date, row.key)
        st.divider()

    render_week_chart(visible)
    render_edit_form(store, visible)

with tabs[2]:
    st.subheader("ייצוא PDF לצוות המטפל")
    if not store.measurements:
        st.info("אין עדיין מדידות לייצוא.")
    else:
        selections = list(ReportSelection)
        selection = st.selectbox(
            "טווח ל-PDF",
            selections,
            index=selections.index(DEFAULT_SELECTION),
            format_func=SELECTION_LABELS.get,
        )
        generated_at = now()
        export_range = resolve_report_range(selection, generated_at)
        pdf_bytes = build_pdf_report(
            store.measurements,
            store.thresholds,
            export_range,
            LOCAL_TZ,
            font_path=settings.pdf_font_path,
            generated_at=generated_at,
        )
        st.download_button(
            "הורדת PDF",
            data=pdf_bytes,
            file_name="SugarMama-glucose-report.pdf",
            mime="application/pdf",
        )

        selected = filter_by_range(store.measurements, export_range.start, export_range.end)
        st.download_button(
            "הורדת CSV",
            data=dataframe_to_csv_bytes(measurements_to_frame(selected, LOCAL_TZ)),
            file_name="SugarMama-measurements.csv",
            mime="text/csv",
        )

with tabs[3]:
    st.subheader("איך למדוד")
    st.markdown(
        """
        **סדר המדידות היומי (סה״כ 4 מדידות)**
        1. סוכר בצום: בבוקר מיד כשמתעוררים, לפני אוכל או שתיה, אחרי לפחות 8 שעות צום (רק מים).
        2. שעתיים אחרי ארוחת בוקר: למדוד שעתיים מהביס הראשון.
        3. שעתיים אחרי ארוחת צהריים: למדוד שעתיים מהביס הראשון.
        4. שעתיים אחרי ארוחת ערב: למדוד שעתיים מהביס הראשון.

        **טווחים מומלצים (כללי, לדוגמה)**
        - צום: תקין עד 95 mg/dL, מעל 95 = גבוה.
        - אחרי ארוחות: תקין עד 120 mg/dL, מעל 120 = גבוה.
        - הטווחים כאן כלליים בלבד; המעקב האמיתי נקבע על ידי הרופא/ה או הדיאטנית.

        **איך מבצעים את המדידה**
        - רחצי ידיים במים וסבון וייבשי היטב.
        - הכניסי סטריפ חדש, דקרי בצד האצבע והקריבי את הסטריפ לטיפת הדם.
        - הזיני את הערך מיד באפליקציה כדי לא לאבד מידע.
        """
    )

st.markdown(
    """
    <div style="background-color: #f3f4f6; padding: 16px; border-radius: 8px; margin-top: 20px;" dir="rtl">
        <p><strong>הערה:</strong> האפליקציה מיועדת למעקב בלבד ואינה מחליפה ייעוץ רפואי.
        בערכים חריגים או בתסמינים פני לצוות המטפל.</p>
    </div>
    """,
    unsafe_allow_html=True,
)
