"""Dashboard rendering: full HTML for the revenue dashboard (/) and the settings/editing view (/admin)."""

import json
from datetime import datetime

from markupsafe import escape

from revenue_model import sorted_entries

_HEAD = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>{title}</title>
<link rel="manifest" href="/manifest.json">
<meta name="theme-color" content="#000000">
<link rel="preconnect" href="https://fonts.googleapis.com">
<link rel="preconnect" href="https://fonts.gstatic.com" crossorigin>
<link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600;700&family=JetBrains+Mono:wght@500;700&display=swap" rel="stylesheet">
{scripts}
<style>
:root {{
  --bg-primary: #000000;
  --bg-card: #18181b;
  --bg-input: #27272a;
  --border-subtle: #3f3f46;
  --text-primary: #ffffff;
  --text-secondary: #a1a1aa;
  --text-muted: #71717a;
  --success: #22c55e;
  --warning: #eab308;
  --danger: #f87171;
  --radius: 12px;
  --mono: 'JetBrains Mono', monospace;
}}
* {{ box-sizing:border-box; margin:0; padding:0; }}
body {{
  font-family:'Inter',-apple-system,BlinkMacSystemFont,sans-serif;
  background:var(--bg-primary); color:var(--text-primary);
  min-height:100vh; padding:32px; -webkit-font-smoothing:antialiased;
}}
.container {{ max-width:{max_width}; margin:0 auto; }}
.header {{ display:flex; justify-content:space-between; align-items:center; margin-bottom:48px; }}
.header h1 {{ font-size:1.5rem; font-weight:700; }}
.header a {{ color:var(--text-muted); font-size:0.875rem; text-decoration:none; transition:color 0.15s ease; }}
.header a:hover {{ color:var(--text-primary); }}
.card {{ background:var(--bg-card); border-radius:var(--radius); padding:24px; }}
.hint {{ color:var(--text-muted); font-size:0.875rem; }}
.mono {{ font-family:var(--mono); }}
.banner {{ background:var(--bg-card); border:1px solid var(--border-subtle); border-radius:8px; padding:10px 16px; margin-bottom:24px; font-size:0.875rem; }}
.demo-banner {{ background:var(--warning); color:#000; text-align:center; padding:8px 16px; font-size:0.85rem; font-weight:600; border-radius:8px; margin-bottom:24px; }}
</style>
</head>
"""


def _money(value: float, decimals: int = 0) -> str:
    sign = "-" if round(value, decimals) < 0 else ""
    return f"{sign}${abs(value):,.{decimals}f}"


def _form_number(value: float) -> str:
    """Input value that parses back to exactly the same float."""
    value = float(value)
    return str(int(value)) if value.is_integer() else repr(value)


def _js_json(value) -> str:
    """JSON safe to inline inside a <script> block."""
    return json.dumps(value).replace("</", "<\\/")


def _demo_banner(demo_mode: bool) -> str:
    if not demo_mode:
        return ""
    return '<div class="demo-banner">Demo mode: changes are disabled.</div>'


def _countdown_html(countdown: dict) -> str:
    if countdown is None:
        return "&mdash;"
    return (
        f'<span id="cd-days">{countdown["days"]}</span><span class="unit">d </span>'
        f'<span id="cd-hours">{countdown["hours"]:02d}</span><span class="unit">h </span>'
        f'<span id="cd-minutes">{countdown["minutes"]:02d}</span><span class="unit">m </span>'
        f'<span id="cd-seconds">{countdown["seconds"]:02d}</span><span class="unit">s</span>'
    )


def render_dashboard(data: dict, demo_mode: bool = False) -> str:
    """Revenue total, cumulative chart, pacing stats, countdown and progress bar."""
    m = data["metrics"]
    chart = m["chart"]
    pct = m["progress_percent"]

    chart_html = ""
    if chart:
        chart_html = '<div class="chart-wrap"><canvas id="revenue-chart"></canvas></div>'

    progress_html = ""
    if pct is not None:
        progress_html = f"""
  <div class="progress">
    <div class="progress-label"><span class="hint">Progress to Target</span><span class="pct">{pct:.1f}%</span></div>
    <div class="progress-track"><div class="progress-fill" style="width:{m["progress_bar_width"]:.2f}%"></div></div>
  </div>"""

    head = _HEAD.format(
        title="Revenue",
        max_width="896px",
        scripts='<script src="https://cdn.jsdelivr.net/npm/chart.js@4.4.0/dist/chart.umd.min.js"></script>',
    )
    return head + f"""<body>
<div class="container">
  {_demo_banner(demo_mode)}
  <div class="header">
    <h1>Revenue</h1>
    <a href="/admin">Edit</a>
  </div>

  <div class="headline">
    <div class="total">{_money(m["total_revenue"], 2 if m["total_revenue"] % 1 else 0)}</div>
    <div class="hint">MRR</div>
  </div>

  {chart_html}

  <div class="stats">
    <div class="card">
      <div class="stat" style="color:var(--warning)">{_money(m["weekly_target"])}</div>
      <div class="hint">Needed/Week</div>
    </div>
    <div class="card">
      <div class="stat">{_money(m["target_revenue"])}</div>
      <div class="hint">Target</div>
    </div>
    <div class="card">
      <div class="stat">{_money(m["remaining"])}</div>
      <div class="hint">Remaining</div>
    </div>
    <div class="card">
      <div class="stat countdown mono" id="countdown">{_countdown_html(m["countdown"])}</div>
      <div class="hint">Until Demo Day</div>
    </div>
  </div>
  {progress_html}
</div>
<style>
.headline {{ margin-bottom:48px; }}
.total {{ font-size:3.75rem; font-weight:700; line-height:1.1; margin-bottom:8px; }}
.chart-wrap {{ position:relative; height:256px; margin-bottom:48px; }}
.stats {{ display:grid; grid-template-columns:repeat(4, 1fr); gap:24px; }}
@media (max-width: 768px) {{ .stats {{ grid-template-columns:repeat(2, 1fr); }} }}
.stat {{ font-size:1.875rem; font-weight:700; margin-bottom:4px; }}
.stat.countdown {{ font-size:1.5rem; }}
.unit {{ color:var(--text-muted); font-size:1.125rem; }}
.progress {{ margin-top:32px; }}
.progress-label {{ display:flex; justify-content:space-between; margin-bottom:8px; font-size:0.875rem; }}
.pct {{ color:var(--text-secondary); }}
.progress-track {{ height:8px; background:var(--bg-input); border-radius:9999px; overflow:hidden; }}
.progress-fill {{ height:100%; background:var(--success); border-radius:9999px; transition:width 0.5s ease; }}
</style>
<script>
var CHART_DATA = {_js_json(chart)};
var DEMO_DAY = {_js_json(m["demo_day"])};

function buildRevenueChart() {{
  var ctx = document.getElementById("revenue-chart");
  if (!ctx || typeof Chart === "undefined" || !CHART_DATA.length) return;
  var g = ctx.getContext("2d").createLinearGradient(0, 0, 0, 256);
  g.addColorStop(0.05, "rgba(34,197,94,0.3)");
  g.addColorStop(0.95, "rgba(34,197,94,0)");
  new Chart(ctx, {{
    type: "line",
    data: {{
      labels: CHART_DATA.map(function(p) {{ return p.date; }}),
      datasets: [{{ data: CHART_DATA.map(function(p) {{ return p.revenue; }}), borderColor: "#22c55e", borderWidth: 2,
                    backgroundColor: g, fill: true, tension: 0.35, pointRadius: 0, pointHoverRadius: 4 }}]
    }},
    options: {{
      responsive: true,
      maintainAspectRatio: false,
      interaction: {{ mode: "index", intersect: false }},
      plugins: {{
        legend: {{ display: false }},
        tooltip: {{
          backgroundColor: "#18181b", borderColor: "#27272a", borderWidth: 1, cornerRadius: 8, padding: 10,
          titleColor: "#fff", bodyColor: "#a1a1aa",
          callbacks: {{
            label: function(c) {{
              var p = CHART_DATA[c.dataIndex];
              return "Revenue: $" + p.revenue.toLocaleString() + "  (+$" + p.added.toLocaleString() + ")";
            }}
          }}
        }}
      }},
      scales: {{
        x: {{ grid: {{ display: false }}, border: {{ display: false }}, ticks: {{ color: "#71717a", font: {{ size: 12 }} }} }},
        y: {{ grid: {{ display: false }}, border: {{ display: false }},
              ticks: {{ color: "#71717a", font: {{ size: 12 }}, callback: function(v) {{ return "$" + v.toLocaleString(); }} }} }}
      }}
    }}
  }});
}}

/* Demo day is a local calendar day: count down to local midnight, never below zero. */
function pad2(n) {{ return (n < 10 ? "0" : "") + n; }}
function updateCountdown() {{
  if (!DEMO_DAY) return;
  var parts = DEMO_DAY.split("-");
  var demo = new Date(+parts[0], +parts[1] - 1, +parts[2]);
  var total = Math.max(0, Math.floor((demo.getTime() - Date.now()) / 1000));
  var set = function(id, v) {{ var el = document.getElementById(id); if (el) el.textContent = v; }};
  set("cd-days", Math.floor(total / 86400));
  set("cd-hours", pad2(Math.floor((total % 86400) / 3600)));
  set("cd-minutes", pad2(Math.floor((total % 3600) / 60)));
  set("cd-seconds", pad2(total % 60));
}}

buildRevenueChart();
if (DEMO_DAY) {{
  updateCountdown();
  setInterval(updateCountdown, 1000);
}}
</script>
</body>
</html>"""


def render_admin(doc: dict, saved: str = "", demo_mode: bool = False) -> str:
    """Goals form, add-revenue form, CSV import and the entry list (newest first)."""
    settings = doc["settings"]
    entries = sorted_entries(doc["entries"], newest_first=True)
    today = datetime.now().strftime("%Y-%m-%d")
    target = settings.get("targetRevenue", 0)
    target_s = _form_number(target) if isinstance(target, (int, float)) else escape(str(target))

    demo_day_s = escape(settings.get("demoDay", ""))
    saved_html = f'<div class="banner">{escape(saved)}</div>' if saved else ""

    rows = ""
    for e in entries:
        note = f'<div class="hint">{escape(e["note"])}</div>' if e.get("note") else ""
        amount_cls = "amount neg" if e["amount"] < 0 else "amount"
        rows += (
            f'<div class="entry">'
            f'<div><div class="{amount_cls}">{_money(e["amount"], 2)}</div>'
            f'<div class="hint">{datetime.strptime(e["date"], "%Y-%m-%d"):%b %d, %Y}</div>{note}</div>'
            f'<form method="post" action="/admin/entries/{escape(e["id"])}/delete">'
            f'<button type="submit" class="link-danger">Delete</button></form>'
            f'</div>'
        )
    if not rows:
        rows = '<div class="hint" style="text-align:center;padding:32px 0;">No revenue entries yet</div>'

    head = _HEAD.format(title="Settings", max_width="672px", scripts="")
    return head + f"""<body>
<div class="container">
  {_demo_banner(demo_mode)}
  <div class="header">
    <h1>Settings</h1>
    <a href="/">Back to Dashboard</a>
  </div>
  {saved_html}

  <div class="card section">
    <h2>Goals</h2>
    <form method="post" action="/admin/settings">
      <div class="grid2">
        <div>
          <label>Target Revenue</label>
          <input type="number" step="any" min="0" name="targetRevenue" value="{target_s}">
        </div>
        <div>
          <label>Demo Day (YYYY-MM-DD)</label>
          <input type="text" name="demoDay" placeholder="2026-03-23" value="{demo_day_s}">
        </div>
      </div>
      <button type="submit" class="secondary">Save Goals</button>
    </form>
  </div>

  <div class="card section">
    <h2>Add Revenue</h2>
    <form method="post" action="/admin/entries">
      <div class="grid2">
        <div>
          <label>Amount ($)</label>
          <input type="number" step="0.01" name="amount" placeholder="0.00" required>
        </div>
        <div>
          <label>Date (YYYY-MM-DD)</label>
          <input type="text" name="date" value="{today}" required>
        </div>
      </div>
      <div>
        <label>Note (optional)</label>
        <input type="text" name="note" placeholder="e.g., Customer ABC">
      </div>
      <button type="submit" class="primary">Add Revenue</button>
    </form>
  </div>

  <div class="card section">
    <h2>Import CSV</h2>
    <p class="hint" style="margin-bottom:12px;">Needs Date and Amount columns; Note/Description is optional. Duplicates are skipped.</p>
    <form method="post" action="/admin/import" enctype="multipart/form-data">
      <input type="file" name="file" accept=".csv,text/csv">
      <button type="submit" class="secondary">Import</button>
    </form>
  </div>

  <div class="card section">
    <div style="display:flex;justify-content:space-between;align-items:center;margin-bottom:16px;">
      <h2 style="margin:0;">Revenue History</h2>
      <a href="/api/export" class="hint">Export .xlsx</a>
    </div>
    {rows}
  </div>
</div>
<style>
.section {{ margin-bottom:32px; }}
.section h2 {{ font-size:1.125rem; font-weight:600; margin-bottom:16px; }}
.grid2 {{ display:grid; grid-template-columns:1fr 1fr; gap:16px; margin-bottom:16px; }}
label {{ display:block; color:var(--text-muted); font-size:0.875rem; margin-bottom:8px; }}
input[type=text], input[type=number] {{
  width:100%; background:var(--bg-input); border:1px solid var(--border-subtle); border-radius:8px;
  padding:8px 16px; color:var(--text-primary); font-size:1rem; margin-bottom:16px;
}}
input:focus {{ outline:none; border-color:var(--text-muted); }}
input[type=file] {{ color:var(--text-secondary); margin-bottom:16px; display:block; }}
button {{ border:none; border-radius:8px; padding:8px 16px; font-weight:500; cursor:pointer; font-size:0.95rem; }}
button.primary {{ width:100%; background:#16a34a; color:#fff; }}
button.primary:hover {{ background:var(--success); }}
button.secondary {{ background:var(--bg-input); color:var(--text-primary); }}
.link-danger {{ background:none; color:var(--text-muted); padding:0; font-size:0.875rem; }}
.link-danger:hover {{ color:var(--danger); }}
.entry {{ display:flex; justify-content:space-between; align-items:center; padding:12px 0; border-bottom:1px solid var(--bg-input); }}
.entry:last-child {{ border-bottom:none; }}
.amount {{ font-weight:600; color:var(--success); }}
.amount.neg {{ color:var(--danger); }}
</style>
</body>
</html>"""
