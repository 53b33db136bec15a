"""Flask route handlers for the income-in-USD page (Blueprint)."""

from datetime import datetime
from io import BytesIO

from flask import Blueprint, Response, jsonify, request, send_file

bp = Blueprint("main", __name__)

# Module-level references, set by init_routes()
SITE_TITLE = "Income in USD"
_deps = {}  # all other dependencies


def init_routes(config):
    """Inject dependencies from main(). Call before registering blueprint."""
    global SITE_TITLE, _deps
    SITE_TITLE = config.get("SITE_TITLE") or SITE_TITLE
    _deps.update(config)


# ── Accessor helpers for injected dependencies ──
def get_rate_table():
    return _deps["get_rate_table"]()

def render_page(table, title):
    return _deps["render_page"](table, title)


def _error(message, status):
    return jsonify({"success": False, "error": message}), status


@bp.route("/health")
def health():
    return jsonify({"status": "ok"})


@bp.route("/api/rates")
def api_rates():
    """Full expanded rate table."""
    table = get_rate_table()
    return jsonify({
        "start_year": table[0]["year"] if table else None,
        "end_year": table[-1]["year"] if table else None,
        "rates": table,
    })


@bp.route("/api/rates/<year>")
def api_rate(year):
    entry = _deps["find_rate"](get_rate_table(), year)
    if entry is None:
        return _error(f"No rate for year {year}", 404)
    return jsonify(entry)


@bp.route("/api/convert", methods=["GET", "POST"])
def api_convert():
    """
    GET  ?year=1990&man_yen=500  -> single-year conversion
    POST {"amounts": {"1990": 500, ...}} -> every year plus totals
    Invalid amounts convert to 0 / '-'; only an unknown year is an error.
    """
    table = get_rate_table()
    if request.method == "POST":
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or not isinstance(data.get("amounts", {}), dict):
            return _error("Expected JSON body {\"amounts\": {year: man_yen}}", 400)
        amounts = data.get("amounts", {})
        for year in amounts:
            if _deps["find_rate"](table, year) is None:
                return _error(f"Year out of range: {year}", 400)
        return jsonify(_deps["summarize_income"](table, amounts))

    year = request.args.get("year", "")
    entry = _deps["find_rate"](table, year)
    if entry is None:
        return _error(f"Year out of range: {year or '(missing)'}", 400)
    man_yen = _deps["parse_man_yen"](request.args.get("man_yen"))
    usd = _deps["convert_man_yen"](man_yen, entry["rate"])
    return jsonify({
        "year": entry["year"],
        "rate": entry["rate"],
        "man_yen": man_yen,
        "usd": usd,
        "display": _deps["format_usd"](usd),
    })


@bp.route("/api/export")
def api_export():
    """Export the rate table as JSON."""
    return jsonify({
        "exported_at": datetime.now().isoformat(),
        "title": SITE_TITLE,
        "yen_per_man": _deps["YEN_PER_MAN"],
        "rates": get_rate_table(),
    })


@bp.route("/api/export.xlsx")
def api_export_xlsx():
    """Export the rate table as an Excel workbook."""
    wb = _deps["build_rate_workbook"](get_rate_table(), SITE_TITLE)
    buf = BytesIO()
    wb.save(buf)
    buf.seek(0)
    return send_file(
        buf,
        mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        as_attachment=True,
        download_name=f"usd_jpy_rates_{datetime.now().strftime('%Y%m%d')}.xlsx",
    )


# The page is served for any other path
@bp.route("/", defaults={"path": ""})
@bp.route("/<path:path>")
def index(path):
    if path.startswith("api/"):
        return _error("Not found", 404)
    html = render_page(get_rate_table(), SITE_TITLE)
    return Response(html, mimetype="text/html")
