import csv
import io
from typing import Dict, Iterable

from fpdf import FPDF

CSV_COLUMNS = (
    "id",
    "created_at",
    "customer_name",
    "customer_phone",
    "weight",
    "price_per_kg",
    "total",
    "status",
    "due_date",
    "note",
)

PDF_HEADINGS = (
    "ID", "Waktu", "Pelanggan", "Telepon", "Berat", "Harga/kg", "Total", "Status", "Due", "Catatan",
)
PDF_COL_WIDTHS = (4, 13, 13, 10, 6, 8, 9, 8, 9, 20)


def format_number(value) -> str:
    """30000.0 → "30000", 2.5 → "2.5" """
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _cell(value) -> str:
    if value is None:
        return ""
    return format_number(value) if isinstance(value, float) else str(value)


def orders_csv(rows: Iterable[Dict], summary: Dict) -> str:
    """
    CSV отчёта: заголовок, строки заказов (все ячейки в кавычках),
    затем пустая строка и блок #summary
    """
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
    output.write(",".join(CSV_COLUMNS) + "\n")
    for row in rows:
        writer.writerow([_cell(row.get(column)) for column in CSV_COLUMNS])

    output.write("\n")
    output.write("#summary,,,\n")
    output.write(f"total_orders,{summary.get('count', 0)}\n")
    output.write(f"total_revenue,{format_number(summary.get('total_revenue', 0))}\n")
    output.write(f"total_weight,{format_number(summary.get('total_weight', 0))}\n")
    return output.getvalue()


def _latin1(text: str) -> str:
    # встроенные шрифты PDF знают только latin-1
    return text.encode("latin-1", errors="replace").decode("latin-1")


def orders_pdf(title: str, rows: Iterable[Dict], summary: Dict) -> bytes:
    """
    PDF отчёта: заголовок, таблица заказов (переносится на новые страницы),
    под таблицей итоги
    """
    pdf = FPDF(orientation="L", unit="pt", format="A4")
    pdf.set_margins(40, 40, 40)
    pdf.add_page()

    pdf.set_font("Helvetica", size=14)
    pdf.cell(text=_latin1(title), new_x="LMARGIN", new_y="NEXT")
    pdf.ln(10)

    pdf.set_font("Helvetica", size=8)
    with pdf.table(col_widths=PDF_COL_WIDTHS, line_height=12) as table:
        table.row(PDF_HEADINGS)
        for row in rows:
            table.row([_latin1(_cell(row.get(column))) for column in CSV_COLUMNS])

    pdf.ln(10)
    pdf.set_font("Helvetica", size=11)
    totals = (
        f"Total Order: {summary.get('count', 0)}",
        f"Total Pendapatan: Rp {format_number(summary.get('total_revenue', 0))}",
        f"Total Berat: {format_number(summary.get('total_weight', 0))} kg",
    )
    for line in totals:
        pdf.cell(text=line, new_x="LMARGIN", new_y="NEXT")
    return bytes(pdf.output())


def report_title(meta: Dict) -> str:
    if "date" in meta:
        return f"Laporan Harian - {meta['date']}"
    return f"Laporan Periode - {meta['start']} s/d {meta['end']}"


def report_filename(meta: Dict, extension: str = "csv") -> str:
    if "date" in meta:
        return f"report-daily-{meta['date']}.{extension}"
    return f"report-period-{meta['start']}_to_{meta['end']}.{extension}"


def pdf_filename(meta: Dict) -> str:
    return report_filename(meta, "pdf")


def report_csv(report: Dict) -> str:
    return orders_csv(report["orders"], report["summary"])


def report_pdf(report: Dict) -> bytes:
    return orders_pdf(report_title(report["meta"]), report["orders"], report["summary"])
