import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import date

import streamlit as st
import plotly.express as px
import plotly.graph_objects as go

from budget_engine.config import load_config
from budget_engine.domain import CustomRuleEntry, CustomRule, RULE_NAMES, custom_percentages, rule_from_name
from budget_engine.events import (
    EventBus,
    UNUSUAL_SPENDING,
    NEW_SPENDING,
    CATEGORY_ALERT,
)
from budget_engine.frames import allocations_frame, spending_frame, transactions_frame, trends_frame
from budget_engine.logger import setup_logging
from budget_engine.services import default_service
from budget_engine.transforms import load_seed, update_budget_config

st.set_page_config(page_title="Budget Insights", layout="wide")

settings = load_config()
setup_logging(settings)

categories, transactions, budget_config = load_seed("data/seed.json")

if "alerts" not in st.session_state:
    st.session_state.alerts = []

st.sidebar.markdown("### ⚙️ Budget")
rule_name = st.sidebar.selectbox("Budget rule", RULE_NAMES, index=RULE_NAMES.index(budget_config.rule.name))
income = st.sidebar.number_input("Monthly income", min_value=0.0, value=float(budget_config.monthly_income), step=100.0)
as_of = st.sidebar.date_input("As of", value=date(2025, 2, 28))
settings.unusual_spending_threshold = st.sidebar.slider(
    "Unusual spending threshold (%)", min_value=5, max_value=100, value=int(settings.unusual_spending_threshold * 100)
) / 100

rule = rule_from_name(rule_name)
if isinstance(rule, CustomRule):
    st.sidebar.markdown("**Custom split (%)**")
    seeded = custom_percentages(budget_config.rule)
    entries = []
    for cat in categories:
        pct = st.sidebar.number_input(cat.name, min_value=0.0, max_value=100.0, value=min(float(seeded.get(cat.id, 0.0)), 100.0), step=5.0, key=f"pct_{cat.id}")
        if pct > 0:
            entries.append(CustomRuleEntry(cat.id, pct))
    rule = CustomRule(entries=tuple(entries))

config = update_budget_config(budget_config, rule=rule, monthly_income=income)

bus = EventBus()
for name in (UNUSUAL_SPENDING, NEW_SPENDING, CATEGORY_ALERT):
    bus.subscribe(name, lambda event: st.session_state.alerts.append(event) or {})
st.session_state.alerts = []

service = default_service(settings, bus)
result = service.snapshot(transactions, categories, config, as_of)
report = service.insight_report(transactions, categories, config, as_of)

st.title("💡 Budget Insights")

for entry in report["validation"]:
    for msg in entry["messages"]:
        st.warning(msg)

if result.is_left():
    st.error(f"Action needed: {result.get_error()['message']}")
    st.stop()

snapshot = result.get_or_else(None)

k1, k2, k3, k4 = st.columns(4)
with k1:
    st.metric("Guilt-free balance", f"{snapshot.guilt_free_balance:,.2f}")
with k2:
    st.metric("Projected savings", f"{snapshot.projected_savings:,.2f}", help=f"{settings.projection_months} months ahead")
with k3:
    st.metric("Savings goal", f"{snapshot.savings_progress:.0f}%")
with k4:
    st.metric("Flags", len(snapshot.unusual_spending) + len(snapshot.new_spending))

col_alloc, col_spend = st.columns(2)
with col_alloc:
    st.subheader("🎯 Allocation targets")
    df_alloc = allocations_frame(snapshot.allocations)
    fig_alloc = px.pie(df_alloc, values="target", names="bucket", template="plotly_dark")
    st.plotly_chart(fig_alloc, use_container_width=True)

with col_spend:
    st.subheader("📂 Spending this month")
    df_spend = spending_frame(snapshot, categories)
    fig_spend = px.bar(df_spend, x="category", y="spent", template="plotly_dark")
    st.plotly_chart(fig_spend, use_container_width=True)

col_groups, col_income = st.columns(2)
with col_groups:
    st.subheader("🧮 Spent by group")
    fig_groups = px.bar(
        x=[kind.value for kind in snapshot.spending_by_classification],
        y=list(snapshot.spending_by_classification.values()),
        labels={"x": "group", "y": "spent"},
        template="plotly_dark",
    )
    st.plotly_chart(fig_groups, use_container_width=True)

with col_income:
    st.subheader("💵 Income this month")
    if snapshot.income_by_category:
        st.table({"category": list(snapshot.income_by_category), "amount": list(snapshot.income_by_category.values())})
    else:
        st.info("No income recorded this month.")

st.subheader("🚨 Unusual spending")
if snapshot.unusual_spending or snapshot.new_spending:
    flagged = df_spend[df_spend["increase"].notna() | df_spend["new"]]
    st.table(flagged.assign(increase=flagged["increase"].map(lambda v: f"{v:.0%}" if v == v else "new")))
else:
    st.info("No unusual spending this month.")

for event in st.session_state.alerts:
    if event.name == CATEGORY_ALERT:
        p = event.payload
        st.warning(f"{p['category_id']}: {p['spent']:,.2f} of {p['limit']:,.2f} ({p['percent_used']:.0f}%)")

st.subheader("📈 Monthly trend")
df_trend = trends_frame(snapshot)
fig_ts = go.Figure()
fig_ts.add_trace(go.Scatter(x=df_trend["month"], y=df_trend["income"], mode="lines+markers", name="Income"))
fig_ts.add_trace(go.Scatter(x=df_trend["month"], y=df_trend["expenses"], mode="lines+markers", name="Expenses"))
fig_ts.update_layout(template="plotly_dark", margin=dict(t=30, b=10, l=10, r=10))
st.plotly_chart(fig_ts, use_container_width=True)

with st.expander("🧾 Transactions"):
    df_tx = transactions_frame(transactions, categories)
    st.dataframe(df_tx, use_container_width=True)
    st.download_button("⬇ Download CSV", df_tx.to_csv(index=False), file_name="transactions.csv")
