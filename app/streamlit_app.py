from typing import Dict, List

import pandas as pd
import streamlit as st

from discrim_knn.models.predict import load_workflow, predict_one
from discrim_knn.models.train import EXPERIMENTS, ExperimentResult, save_experiment

st.set_page_config(page_title="Discriminant Analysis & KNN", layout="wide")
st.title("Discriminant Analysis & K-Nearest Neighbors")

DESCRIPTIONS = {
    "lda": "Linear discriminant analysis of `canceled_service` on the churn data.",
    "qda": "Quadratic discriminant analysis of `canceled_service` on the churn data.",
    "knn_classification": "KNN classification of `canceled_service`, K tuned by ROC AUC over 5 folds.",
    "knn_regression": "KNN regression of `selling_price`, K tuned by RMSE over 5 folds.",
}


@st.cache_data
def load_df(name: str) -> pd.DataFrame:
    loader, _ = EXPERIMENTS[name]
    return loader(use_cache=True)


@st.cache_resource
def run(name: str) -> ExperimentResult:
    _, runner = EXPERIMENTS[name]
    result = runner(load_df(name))
    save_experiment(result)
    return result


@st.cache_resource
def get_workflow(name: str):
    workflow, _ = load_workflow(name)
    return workflow


@st.cache_data
def get_category_options(df: pd.DataFrame, column: str) -> List[str]:
    if column not in df.columns:
        return []
    vals = df[column].dropna().astype(str).unique().tolist()
    return sorted(vals)


@st.cache_data
def get_numeric_bounds(df: pd.DataFrame, column: str):
    if column not in df.columns:
        return None
    ser = pd.to_numeric(df[column], errors="coerce").dropna()
    if ser.empty:
        return None
    return float(ser.min()), float(ser.max()), float(ser.median())


name = st.sidebar.selectbox("Experiment", list(EXPERIMENTS), format_func=lambda n: n.replace("_", " ").upper())
st.markdown(DESCRIPTIONS[name])

if st.sidebar.button("Run experiment"):
    st.session_state[name] = True

if st.session_state.get(name):
    with st.spinner("Fitting workflow..."):
        result = run(name)

    col1, col2 = st.columns([1, 2])
    with col1:
        st.subheader("Test set metrics")
        st.dataframe(result.metrics, hide_index=True)
        if result.best_params:
            st.subheader("Selected parameters")
            st.json(result.best_params)
    with col2:
        if result.tuning is not None:
            st.subheader("Grid search")
            st.dataframe(result.tuning.collect_metrics(), hide_index=True)

    for fig_name, fig in result.figures.items():
        st.subheader(fig_name.replace("_", " ").title())
        st.pyplot(fig)

    st.markdown("---")
    st.subheader("Predict a new record")
    workflow = get_workflow(name)
    df = load_df(name)

    inputs: Dict[str, object] = {}
    with st.form("predict"):
        for column in workflow.recipe.nominal:
            options = get_category_options(df, column)
            inputs[column] = st.selectbox(column, options) if options else st.text_input(column)
        for column in workflow.recipe.numeric:
            bounds = get_numeric_bounds(df, column)
            if bounds:
                min_v, max_v, median_v = bounds
                inputs[column] = st.number_input(column, min_v, max_v, median_v)
            else:
                inputs[column] = st.number_input(column, value=0.0)
        submitted = st.form_submit_button("Predict")

    if submitted:
        try:
            pred = predict_one(name, inputs)
        except (ValueError, KeyError) as e:
            st.error(f"Prediction failed: {e}")
        else:
            if "pred" in pred:
                st.markdown(f"<h1 style='margin:0'>${pred['pred']:,.0f}</h1>", unsafe_allow_html=True)
                st.caption("Predicted selling price")
            else:
                st.markdown(f"<h1 style='margin:0'>{pred['pred_class']}</h1>", unsafe_allow_html=True)
                st.caption(f"Predicted canceled_service (P(yes) = {pred['probability']:.3f})")
else:
    st.info("Choose an experiment and press **Run experiment**.")
