import sys
import os
from datetime import date

import streamlit as st

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from laundry.config import Config, configure_logging
from laundry.domain import OrderPatch, OrderStatus
from laundry.errors import LaundryError
from laundry.service import LaundryApp
from laundry.store import MemoryStore
from Report_Service.export import pdf_filename, report_csv, report_filename, report_pdf


# ============ Инициализация ============
@st.cache_resource
def get_config() -> Config:
    config = Config.from_env()
    configure_logging(config.log_level)
    return config


st.set_page_config(
    page_title="Laundry",
    page_icon="🧺",
    layout="wide",
    initial_sidebar_state="expanded",
)

config = get_config()

# Хранилище своё у каждой сессии браузера
if "laundry" not in st.session_state:
    st.session_state.laundry = LaundryApp(MemoryStore(), config)

if "toasted" not in st.session_state:
    st.session_state.toasted = set()

laundry: LaundryApp = st.session_state.laundry
STATUSES = [s.value for s in OrderStatus]


# ============ Вспомогательные функции ============
def format_money(value: float) -> str:
    return f"Rp {value:,.0f}".replace(",", ".")


def run_safely(action, success: str = ""):
    """Выполняет операцию сервиса и показывает ошибку вместо трейсбэка"""
    try:
        result = action()
    except LaundryError as exc:
        st.error(f"❌ {exc.message}")
        return None
    if success:
        st.success(success)
    return result


def customer_label(customer) -> str:
    return f"#{customer.id} {customer.name}" + (f" ({customer.phone})" if customer.phone else "")


@st.fragment(run_every=config.poll_seconds)
def notification_poller():
    """Опрос непрочитанных уведомлений; каждое показывается тостом один раз"""
    fresh = [
        n for n in laundry.notifications.list_unread() if n.id not in st.session_state.toasted
    ]
    for n in reversed(fresh[:5]):
        st.toast(n.message, icon="🔔")
    st.session_state.toasted |= {n.id for n in fresh}
    st.caption(f"🔔 Непрочитанных: {len(laundry.notifications.list_unread())}")


# ============ HEADER ============
st.title("🧺 Прачечная")

# ============ SIDEBAR - Навигация ============
with st.sidebar:
    st.header("📂 Навигация")
    page = st.radio(
        "Выберите раздел:",
        ["📦 Заказы", "👥 Клиенты", "🔔 Уведомления", "📑 Отчёты", "⚙️ Настройки"],
        label_visibility="collapsed",
    )
    st.divider()
    notification_poller()


# ============ PAGE: ЗАКАЗЫ ============
if page == "📦 Заказы":
    st.header("📦 Заказы")

    customers = laundry.customers.search()
    with st.expander("➕ Новый заказ", expanded=not customers):
        if not customers:
            st.info("Сначала добавьте клиента.")
        else:
            with st.form("new_order", clear_on_submit=True):
                customer = st.selectbox("Клиент", customers, format_func=customer_label)
                col1, col2 = st.columns(2)
                with col1:
                    weight = st.number_input("Вес (кг)", min_value=0.0, step=0.5)
                with col2:
                    price = st.number_input(
                        "Цена за кг", min_value=0.0, value=laundry.settings.price_per_kg()
                    )
                due = st.date_input("Срок", value=None)
                note = st.text_input("Заметка")
                if st.form_submit_button("Создать", type="primary"):
                    order = run_safely(
                        lambda: laundry.orders.create(
                            customer.id, weight, price, due.isoformat() if due else None, note
                        )
                    )
                    if order:
                        st.success(f"✅ Заказ #{order.id}: {format_money(order.total)}")

    st.divider()

    col1, col2 = st.columns([3, 1])
    with col1:
        q = st.text_input("🔍 Поиск (имя, телефон, номер заказа)", key="orders_q")
    with col2:
        status_filter = st.selectbox("Статус", ["Все"] + STATUSES, key="orders_status")

    rows = laundry.orders.search(q, None if status_filter == "Все" else status_filter)
    st.info(f"🔍 Найдено заказов: **{len(rows)}**")

    for row in rows:
        with st.container():
            cols = st.columns([1, 3, 2, 2, 2])
            with cols[0]:
                st.markdown(f"**#{row['id']}**")
            with cols[1]:
                st.write(row["customer_name"] or "—")
                st.caption(row["created_at"])
            with cols[2]:
                st.write(f"{row['weight']} кг × {format_money(row['price_per_kg'])}")
            with cols[3]:
                st.write(format_money(row["total"]))
            with cols[4]:
                new_status = st.selectbox(
                    "Статус",
                    STATUSES,
                    index=STATUSES.index(row["status"]),
                    key=f"status_{row['id']}",
                    label_visibility="collapsed",
                )
                if new_status != row["status"]:
                    run_safely(
                        lambda: laundry.orders.update(row["id"], OrderPatch(status=new_status))
                    )
                    st.rerun()
            st.divider()


# ============ PAGE: КЛИЕНТЫ ============
elif page == "👥 Клиенты":
    st.header("👥 Клиенты")

    with st.form("new_customer", clear_on_submit=True):
        name = st.text_input("Имя")
        phone = st.text_input("Телефон")
        note = st.text_input("Заметка")
        if st.form_submit_button("➕ Добавить", type="primary"):
            run_safely(lambda: laundry.customers.create(name, phone, note), "✅ Клиент добавлен")

    q = st.text_input("🔍 Поиск", key="customers_q")
    for c in laundry.customers.search(q):
        st.write(f"**{c.name}** · {c.phone or '—'} · {c.note or ''}")
        st.caption(c.created_at)


# ============ PAGE: УВЕДОМЛЕНИЯ ============
elif page == "🔔 Уведомления":
    st.header("🔔 Уведомления")

    if st.button("✅ Отметить все прочитанными"):
        count = laundry.notifications.mark_all_read()
        st.success(f"Отмечено: {count}")

    for n in laundry.notifications.list_all():
        cols = st.columns([6, 2])
        with cols[0]:
            marker = "" if n.read else "🆕 "
            st.write(f"{marker}{n.message}")
            st.caption(n.created_at)
        with cols[1]:
            if not n.read and st.button("Прочитано", key=f"read_{n.id}"):
                laundry.notifications.mark_read(n.id)
                st.rerun()


# ============ PAGE: ОТЧЁТЫ ============
elif page == "📑 Отчёты":
    st.header("📑 Отчёты")

    tab1, tab2 = st.tabs(["📅 За день", "🗓️ За период"])

    def show_report(report: dict, key: str):
        summary = report["summary"]
        col1, col2, col3 = st.columns(3)
        with col1:
            st.metric("🧾 Заказов", summary["count"])
        with col2:
            st.metric("💰 Выручка", format_money(summary["total_revenue"]))
        with col3:
            st.metric("⚖️ Вес, кг", f"{summary['total_weight']:g}")

        st.subheader("По статусам")
        for group in report["breakdown"]:
            st.write(f"**{group['status']}**: {group['count']} · {format_money(group['sum_total'])}")

        if report["orders"]:
            st.dataframe(report["orders"], use_container_width=True)

        st.download_button(
            "⬇️ CSV",
            data=report_csv(report),
            file_name=report_filename(report["meta"]),
            mime="text/csv",
            key=f"csv_{key}",
        )
        st.download_button(
            "⬇️ PDF",
            data=report_pdf(report),
            file_name=pdf_filename(report["meta"]),
            mime="application/pdf",
            key=f"pdf_{key}",
        )

    with tab1:
        day = st.date_input("День", value=date.today(), key="report_day")
        report = run_safely(lambda: laundry.reports.daily(day.isoformat()))
        if report:
            show_report(report, "daily")

    with tab2:
        col1, col2 = st.columns(2)
        with col1:
            start = st.date_input("С", value=date.today(), key="report_start")
        with col2:
            end = st.date_input("По", value=date.today(), key="report_end")
        if st.button("Показать", key="period_btn"):
            report = run_safely(
                lambda: laundry.reports.period(
                    start.isoformat() if start else None, end.isoformat() if end else None
                )
            )
            if report:
                show_report(report, "period")


# ============ PAGE: НАСТРОЙКИ ============
elif page == "⚙️ Настройки":
    st.header("⚙️ Настройки")

    current = laundry.settings.all()
    value = st.text_input("Цена за кг", value=current.get("price_per_kg", ""))
    if st.button("💾 Сохранить", type="primary"):
        run_safely(lambda: laundry.settings.set_price_per_kg(value), "✅ Сохранено")

    st.json(laundry.settings.all())
