"""Page rendering: the single income-in-USD page (table + Chart.js bar chart)."""

import json

from markupsafe import escape


def render_page(table: list[dict], title: str = "Income in USD") -> str:
    """Build the full HTML document for the given indexed rate table."""
    title_s = escape(title)
    start_year = table[0]["year"] if table else ""
    end_year = table[-1]["year"] if table else ""

    rows_html = ""
    for e in table:
        year = e["year"]
        gap_mark = '<span class="gap-mark" title="前後の年から補間したレート">*</span>' if e.get("interpolated") else ""
        rows_html += (
            f'<tr>'
            f'<td>{year}</td>'
            f'<td class="rate">{e["rate"]:.4f}{gap_mark}</td>'
            f'<td><input type="number" min="0" step="any" inputmode="decimal" placeholder="0" '
            f'aria-label="{year}年の年収 (万円)" data-index="{e["index"]}" data-year="{year}" data-rate="{e["rate"]}"></td>'
            f'<td class="usd-value" data-usd="{year}">-</td>'
            f'</tr>'
        )

    rates_json = json.dumps(
        [{"index": e["index"], "year": e["year"], "rate": e["rate"]} for e in table]
    ).replace("</", "<\\/")

    html = f"""<!DOCTYPE html>
<html lang="ja">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{title_s}</title>
<link rel="preconnect" href="https://fonts.googleapis.com">
<link rel="preconnect" href="https://fonts.gstatic.com" crossorigin>
<link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;600&display=swap" rel="stylesheet">
<script src="https://cdn.jsdelivr.net/npm/chart.js@4.4.3/dist/chart.umd.min.js" defer></script>
<style>
:root {{
  color-scheme: light dark;
  --bg-primary: #0f172a;
  --bg-card: rgba(15, 23, 42, 0.85);
  --bg-row: rgba(30, 41, 59, 0.4);
  --border-subtle: rgba(148, 163, 184, 0.2);
  --accent: #38bdf8;
  --text-primary: #f8fafc;
  --text-secondary: #cbd5f5;
  --text-muted: #94a3b8;
}}
* {{ box-sizing: border-box; }}
body {{
  margin: 0;
  font-family: 'Inter', system-ui, -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif;
  background: var(--bg-primary);
  color: var(--text-primary);
  min-height: 100vh;
  display: flex;
  align-items: flex-start;
  justify-content: center;
  padding: 32px 16px 64px;
}}
.card {{
  width: min(960px, 100%);
  background: var(--bg-card);
  backdrop-filter: blur(10px);
  border: 1px solid var(--border-subtle);
  border-radius: 16px;
  padding: 32px;
  box-shadow: 0 30px 60px rgba(15, 23, 42, 0.45);
}}
h1 {{ margin: 0 0 16px; font-size: clamp(24px, 4vw, 32px); }}
p {{ margin: 0 0 24px; line-height: 1.6; color: var(--text-secondary); }}
.table-wrapper {{ margin-bottom: 24px; overflow-x: auto; }}
table {{ width: 100%; border-collapse: collapse; border-radius: 12px; overflow: hidden; }}
thead {{ background: rgba(30, 41, 59, 0.8); }}
th, td {{ padding: 12px 16px; text-align: left; border-bottom: 1px solid rgba(148, 163, 184, 0.1); }}
tbody tr:nth-child(even) {{ background: var(--bg-row); }}
tfoot td {{ font-weight: 600; border-top: 2px solid var(--border-subtle); }}
input[type='number'] {{
  width: 100%;
  padding: 8px 10px;
  border-radius: 8px;
  border: 1px solid rgba(148, 163, 184, 0.4);
  background: rgba(15, 23, 42, 0.6);
  color: inherit;
  font-size: 14px;
}}
input[type='number']:focus {{ outline: none; border-color: var(--accent); box-shadow: 0 0 0 2px rgba(56, 189, 248, 0.2); }}
.rate, .usd-value {{ font-variant-numeric: tabular-nums; font-feature-settings: 'tnum'; font-size: 14px; }}
.rate {{ color: var(--text-muted); }}
.gap-mark {{ color: var(--accent); margin-left: 4px; cursor: help; }}
.chart-wrapper {{ background: rgba(15, 23, 42, 0.6); border: 1px solid var(--border-subtle); border-radius: 12px; padding: 16px; }}
.footnote {{ margin-top: 16px; font-size: 12px; color: var(--text-muted); }}
@media (max-width: 640px) {{
  body {{ padding: 24px 12px 48px; }}
  table, thead, tbody, tfoot, th, td, tr {{ display: block; }}
  thead {{ display: none; }}
  tbody tr {{ margin-bottom: 16px; background: rgba(30, 41, 59, 0.5); border-radius: 12px; }}
  tbody td {{ border: none; padding: 10px 14px; }}
  tbody td:first-child {{ font-weight: 600; }}
  input[type='number'] {{ margin-top: 8px; }}
}}
</style>
</head>
<body>
<main class="card">
  <h1>{title_s}</h1>
  <p>{start_year}年から{end_year}年の年収を万円単位で入力すると、当時の平均為替レートでUSD換算した金額と棒グラフを自動で表示します。</p>
  <div class="table-wrapper">
    <table>
      <thead><tr><th>Year</th><th>USD/JPY</th><th>年収 (万円)</th><th>Annual income (USD)</th></tr></thead>
      <tbody>{rows_html}</tbody>
      <tfoot><tr><td>Total</td><td></td><td class="usd-value" id="total-man">-</td><td class="usd-value" id="total-usd">-</td></tr></tfoot>
    </table>
  </div>
  <div class="chart-wrapper">
    <canvas id="incomeChart" height="220"></canvas>
  </div>
  <p class="footnote">為替レートは各年の平均USD/JPYレートを使用しています。* 印の年はデータがないため前後の年から直線補間しています。数値は提供データに基づき、実際のレートとは異なる場合があります。</p>
</main>

<script>
var RATES = {rates_json};
var YEN_PER_MAN = 10000;
var dataset = RATES.map(function() {{ return 0; }});
var manYen = RATES.map(function() {{ return 0; }});
var chart = null;

var usdFormat = new Intl.NumberFormat('en-US', {{ style: 'currency', currency: 'USD', maximumFractionDigits: 0 }});
var compactFormat = new Intl.NumberFormat('en-US', {{ notation: 'compact', maximumFractionDigits: 1 }});

function formatUsd(value) {{
  if (!Number.isFinite(value) || value <= 0) return '-';
  return usdFormat.format(value);
}}

function ensureChart() {{
  if (chart || typeof Chart === 'undefined') return chart;
  chart = new Chart(document.getElementById('incomeChart'), {{
    type: 'bar',
    data: {{
      labels: RATES.map(function(r) {{ return r.year; }}),
      datasets: [{{ label: 'Annual income (USD)', data: dataset, backgroundColor: '#38bdf8' }}]
    }},
    options: {{
      responsive: true,
      animation: false,
      scales: {{
        x: {{ ticks: {{ color: '#cbd5f5' }}, grid: {{ display: false }} }},
        y: {{
          beginAtZero: true,
          ticks: {{ color: '#cbd5f5', callback: function(v) {{ return compactFormat.format(v); }} }},
          grid: {{ color: 'rgba(148, 163, 184, 0.2)' }}
        }}
      }},
      plugins: {{ legend: {{ labels: {{ color: '#e2e8f0' }} }} }}
    }}
  }});
  return chart;
}}

function refreshTotals() {{
  var usd = dataset.reduce(function(a, b) {{ return a + b; }}, 0);
  var man = manYen.reduce(function(a, b) {{ return a + b; }}, 0);
  document.getElementById('total-usd').textContent = formatUsd(usd);
  document.getElementById('total-man').textContent = man > 0 ? man.toLocaleString('ja-JP') : '-';
}}

function handleInput(event) {{
  var input = event.target;
  var idx = Number(input.dataset.index);
  var rate = Number(input.dataset.rate);
  var cell = document.querySelector('[data-usd="' + input.dataset.year + '"]');
  if (!Number.isInteger(idx) || idx < 0 || idx >= RATES.length || !cell) return;

  var amount = Number.parseFloat(input.value);
  var usd = amount * YEN_PER_MAN / rate;
  if (!Number.isFinite(amount) || amount <= 0 || !(rate > 0) || !Number.isFinite(usd)) {{
    dataset[idx] = 0;
    manYen[idx] = 0;
    cell.textContent = '-';
  }} else {{
    dataset[idx] = usd;
    manYen[idx] = amount;
    cell.textContent = formatUsd(dataset[idx]);
  }}
  refreshTotals();
  var c = ensureChart();
  if (c) c.update();
}}

document.addEventListener('DOMContentLoaded', function() {{
  document.querySelectorAll('input[data-year]').forEach(function(input) {{
    input.addEventListener('input', handleInput);
  }});
  ensureChart();
}});
</script>
</body>
</html>"""
    return html
