import numpy as np
import streamlit as st

from pronote_average.backend_logic import (
    load_coefficients,
    recalculate,
    save_coefficient,
    scan_snapshot,
)
from pronote_average.errors import ScanError, StorageError
from pronote_average.io_csv import (
    AVERAGE_COL,
    COEF_COL,
    SUBJECT_COL,
    coefficients_to_csv,
    edited_coefficients,
    parse_coefficients_csv,
    read_csv_upload,
    records_to_frame,
    validate_coefficients_csv,
)
from pronote_average.logging_config import get_logger
from pronote_average.normalize import format2
from pronote_average.storage import default_store

logger = get_logger(__name__)

# ------------------------
# Streamlit UI
# ------------------------

st.set_page_config(
    page_title="Moyennes Pronote | Moyenne simple & pondérée",
    page_icon="📒",
    layout="centered",
)

st.title("📒 Moyennes Pronote")
st.write(
    "Enregistre la page **Notes / Moyennes** de Pronote (Ctrl+S) ou colle son code source, "
    "puis lance le scan. Chaque matière reçoit un coefficient (1 par défaut) qui est "
    "mémorisé pour les prochains scans."
)

store = default_store()


def set_status(msg: str, kind: str = "info") -> None:
    st.session_state["status"] = (msg, kind)


def show_status() -> None:
    if "status" not in st.session_state:
        return
    msg, kind = st.session_state["status"]
    if kind == "ok":
        st.success(msg)
    elif kind == "bad":
        st.error(msg)
    else:
        st.info(msg)


def refresh_averages() -> None:
    """Re-read every coefficient for the current scan and recompute both averages."""
    scan_result = st.session_state.get("scan_result")
    if not scan_result:
        return
    coef_map = load_coefficients(store, scan_result)
    st.session_state["coef_map"] = coef_map
    st.session_state["averages"] = recalculate(scan_result, coef_map)


def editor_key() -> str:
    return f"coef_editor_{st.session_state.get('editor_version', 0)}"


def reset_editor() -> None:
    """Drop pending table edits; the next run rebuilds the table from the store."""
    st.session_state["editor_version"] = st.session_state.get("editor_version", 0) + 1


def save_edited_coefficients(key: str) -> None:
    edits = (st.session_state.get(key) or {}).get("edited_rows", {})
    changes = edited_coefficients(st.session_state.get("scan_result", ()), edits)
    try:
        for subject, value in changes:
            save_coefficient(store, subject, value)
        refresh_averages()
    except StorageError as e:
        logger.error("Could not save coefficients: %s", e)
        set_status(e.message, "bad")
    reset_editor()


# ------------------------
# Scan
# ------------------------

with st.form("scan_form"):
    uploaded_page = st.file_uploader("Page Pronote enregistrée", type=["html", "htm"])
    pasted_page = st.text_area("… ou code source de la page", height=120)
    scan_clicked = st.form_submit_button("Scanner la page", type="primary")

if scan_clicked:
    for key in ("scan_result", "coef_map", "averages"):
        st.session_state.pop(key, None)
    reset_editor()

    snapshot = uploaded_page.getvalue() if uploaded_page is not None else pasted_page
    try:
        with st.spinner("Scan en cours…"):
            scan_result = scan_snapshot(snapshot)
        st.session_state["scan_result"] = scan_result
        refresh_averages()
        set_status(f"OK : {len(scan_result)} matière(s) détectée(s).", "ok")
    except ScanError as e:
        logger.warning("Scan failed: %s", e)
        set_status(e.message, "bad")
    except StorageError as e:
        logger.error("Scan failed: %s", e)
        set_status(e.message, "bad")

show_status()

# ------------------------
# Results
# ------------------------

if "scan_result" in st.session_state:
    scan_result = st.session_state["scan_result"]
    coef_map = st.session_state.get("coef_map", {})

    key = editor_key()
    st.data_editor(
        records_to_frame(scan_result, coef_map),
        key=key,
        on_change=save_edited_coefficients,
        args=(key,),
        hide_index=True,
        width="stretch",
        disabled=[SUBJECT_COL, AVERAGE_COL],
        column_config={
            COEF_COL: st.column_config.NumberColumn(COEF_COL, min_value=0.0, step=0.1),
        },
    )

    averages = st.session_state.get("averages")
    col1, col2 = st.columns(2)
    with col1:
        st.metric("Moyenne simple", format2(averages.simple) if averages else "—")
    with col2:
        st.metric("Moyenne pondérée", format2(averages.weighted) if averages else "—")

    if averages is not None and np.isnan(averages.weighted) and not np.isnan(averages.simple):
        st.caption("Aucun coefficient positif : la moyenne pondérée n’est pas calculable.")

    if st.button("Recalculer"):
        try:
            refresh_averages()
            set_status("Recalcul OK.", "ok")
        except StorageError as e:
            logger.error("Recalculation failed: %s", e)
            set_status("Erreur pendant le recalcul.", "bad")
        reset_editor()
        st.rerun()

    # ------------------------
    # Coefficients CSV
    # ------------------------
    st.markdown("---")
    st.subheader("Coefficients")

    st.download_button(
        "Exporter les coefficients (CSV)",
        data=coefficients_to_csv(scan_result, st.session_state.get("coef_map", {})),
        file_name="coefficients.csv",
        mime="text/csv",
    )

    coef_csv = st.file_uploader("Importer des coefficients (Matière, Coefficient)", type=["csv"])
    if coef_csv is not None and st.button("Importer"):
        try:
            items = parse_coefficients_csv(validate_coefficients_csv(read_csv_upload(coef_csv)))
            store.set(items)
            refresh_averages()
            set_status(f"{len(items)} coefficient(s) importé(s).", "ok")
        except ValueError as e:
            set_status(f"CSV invalide : {e}", "bad")
        except StorageError as e:
            logger.error("Import failed: %s", e)
            set_status(e.message, "bad")
        reset_editor()
        st.rerun()
else:
    st.info("Charge une page Pronote puis clique sur **Scanner la page**.")
