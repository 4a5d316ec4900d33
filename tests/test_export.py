import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from Report_Service.export import (
    format_number,
    orders_csv,
    orders_pdf,
    pdf_filename,
    report_filename,
    report_pdf,
    report_title,
)

rows = [
    {"id": 1, "created_at": "2024-05-01T09:00:00", "customer_name": 'Budi "B"',
     "customer_phone": "08123", "weight": 2.5, "price_per_kg": 12000.0, "total": 30000.0,
     "status": "received", "due_date": None, "note": "a, b"},
]


def test_csv_header_and_quoted_cells():
    lines = orders_csv(rows, {"count": 1, "total_revenue": 30000.0, "total_weight": 2.5}).split("\n")

    assert lines[0] == (
        "id,created_at,customer_name,customer_phone,weight,price_per_kg,total,status,due_date,note"
    )
    assert lines[1] == (
        '"1","2024-05-01T09:00:00","Budi ""B""","08123","2.5","12000","30000",'
        '"received","","a, b"'
    )


def test_csv_trailing_summary_block():
    text = orders_csv(rows, {"count": 1, "total_revenue": 30000.0, "total_weight": 2.5})
    tail = text.split("\n")[2:]
    assert tail[:5] == [
        "",
        "#summary,,,",
        "total_orders,1",
        "total_revenue,30000",
        "total_weight,2.5",
    ]


def test_csv_without_orders():
    text = orders_csv([], {"count": 0, "total_revenue": 0, "total_weight": 0})
    assert "total_orders,0" in text


def test_report_filenames():
    assert report_filename({"date": "2024-05-01"}) == "report-daily-2024-05-01.csv"
    assert (
        report_filename({"start": "2024-05-01", "end": "2024-05-31"})
        == "report-period-2024-05-01_to_2024-05-31.csv"
    )


def test_integral_numbers_print_without_fraction():
    assert format_number(30000.0) == "30000"
    assert format_number(2.5) == "2.5"
    assert format_number(7) == "7"
    assert format_number(0.0) == "0"


def test_pdf_is_a_pdf_document():
    data = orders_pdf(
        "Laporan Harian - 2024-05-01",
        rows,
        {"count": 1, "total_revenue": 30000.0, "total_weight": 2.5},
    )
    assert isinstance(data, bytes)
    assert data.startswith(b"%PDF")


def test_pdf_with_many_orders_and_non_latin_text():
    many = [{**rows[0], "id": i, "customer_name": "Budi → Sari ✓"} for i in range(1, 80)]
    data = orders_pdf("Laporan Periode - 2024-05-01 s/d 2024-05-31", many, {"count": 79})
    assert data.startswith(b"%PDF")


def test_report_pdf_uses_report_meta():
    report = {
        "meta": {"date": "2024-05-01"},
        "summary": {"count": 0, "total_revenue": 0, "total_weight": 0},
        "breakdown": [],
        "orders": [],
    }
    assert report_pdf(report).startswith(b"%PDF")


def test_pdf_titles_and_filenames():
    assert report_title({"date": "2024-05-01"}) == "Laporan Harian - 2024-05-01"
    assert (
        report_title({"start": "2024-05-01", "end": "2024-05-31"})
        == "Laporan Periode - 2024-05-01 s/d 2024-05-31"
    )
    assert pdf_filename({"date": "2024-05-01"}) == "report-daily-2024-05-01.pdf"
    assert (
        pdf_filename({"start": "2024-05-01", "end": "2024-05-31"})
        == "report-period-2024-05-01_to_2024-05-31.pdf"
    )
