"""
Local server for the income-in-USD page.
Run: python server.py
Then open http://localhost:5000 — enter yearly income in 万円, see it in USD (table + chart).
Settings come from the environment / .env: SITE_TITLE, HOST, PORT, FLASK_DEBUG.
"""

import sys
from pathlib import Path

# Run from project directory
BASE = Path(__file__).resolve().parent
sys.path.insert(0, str(BASE))

from flask import Flask

from rate_manager import (
    YEN_PER_MAN,
    build_rate_workbook,
    convert_man_yen,
    find_rate,
    format_usd,
    get_rate_table,
    load_settings,
    parse_man_yen,
    summarize_income,
)
from dashboard import render_page
from routes import bp, init_routes


def create_app(settings=None):
    """Build the Flask app with routes wired to the rate table."""
    settings = settings or load_settings()

    app = Flask(__name__, static_folder=None)
    app.json.sort_keys = False

    # Build the table before the first request; every page reuses it
    table = get_rate_table()
    gaps = sum(1 for e in table if e["interpolated"])
    print(f"[Rates] {table[0]['year']}-{table[-1]['year']}: {len(table)} years ({gaps} interpolated)")

    init_routes({
        "SITE_TITLE": settings["SITE_TITLE"],
        "YEN_PER_MAN": YEN_PER_MAN,
        "get_rate_table": get_rate_table,
        "find_rate": find_rate,
        "parse_man_yen": parse_man_yen,
        "convert_man_yen": convert_man_yen,
        "format_usd": format_usd,
        "summarize_income": summarize_income,
        "build_rate_workbook": build_rate_workbook,
        "render_page": render_page,
    })
    app.register_blueprint(bp)
    return app


def main():
    settings = load_settings()
    app = create_app(settings)

    host = settings["HOST"]
    port = settings["PORT"]
    print(f"Income in USD: http://{host}:{port}")
    print(f"[Startup] Title: {settings['SITE_TITLE']}")
    print("Ctrl+C to stop.")
    app.run(host=host, port=port, debug=settings["DEBUG"], use_reloader=settings["DEBUG"])


if __name__ == "__main__":
    main()
