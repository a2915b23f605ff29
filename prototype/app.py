"""
Decision Portal - Streamlit App

Lists the decision models available through the portal API and links
each one to its scenario form.
Run with: streamlit run prototype/app.py
"""

import requests
import streamlit as st

from src.config import get_settings

st.set_page_config(
    page_title="Decision Portal",
    page_icon="🧭",
    layout="centered",
    initial_sidebar_state="expanded",
)

API_URL = get_settings().portal_api_url


def fetch_models() -> list[dict]:
    """Model resources from the portal API; raises with a displayable message."""
    response = requests.get(f"{API_URL}/api/models", timeout=30)
    if response.status_code != 200:
        raise RuntimeError(f"Failed to fetch models, status: {response.status_code}")
    return response.json().get("data") or []


def main():
    st.markdown("# 🧭 Welcome to the Model Selector")
    st.markdown("Pick a decision model to describe a case and get a decision.")

    st.markdown("---")

    try:
        models = fetch_models()
    except (requests.RequestException, RuntimeError, ValueError) as e:
        st.error(str(e))
        models = []

    if not models:
        st.info("No models available.")
        return

    for model in models:
        attributes = model.get("attributes") or {}
        with st.container(border=True):
            st.markdown(f"#### [{attributes.get('name') or model['id']}](/Model_Form?model={model['id']})")
            if attributes.get("description"):
                st.caption(attributes["description"])

    st.markdown("---")
    st.markdown("""
    <div style="text-align: center; color: #888;">
        <p>Have many cases? Use <b>Batch Upload</b> in the sidebar →</p>
    </div>
    """, unsafe_allow_html=True)


if __name__ == "__main__":
    main()
