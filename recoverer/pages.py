"""
Recoverer pages - plain text and HTML renderings of a FaultReport.

The HTML page is self-contained: inline CSS, no scripts, a single
decorative image. It is rendered through a Jinja2 environment with
autoescaping on, so fault text, paths, stack lines, header values and
exported variables can never inject markup.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from jinja2 import Environment, StrictUndefined

from .report import FaultReport

_HTML_TYPES = ("text/html", "application/xhtml+xml")
_REDACTED_HEADERS = ("authorization", "proxy-authorization", "cookie", "set-cookie")


# ============================================================================
# Content negotiation
# ============================================================================

def accepts_html(accept: Optional[str]) -> bool:
    """True when the Accept header lists an HTML type with a non-zero q."""
    if not accept:
        return False

    for media_range in accept.split(","):
        parts = [p.strip() for p in media_range.split(";")]
        media_type = parts[0].lower()
        if media_type not in _HTML_TYPES:
            continue
        q = 1.0
        for param in parts[1:]:
            key, _, value = param.partition("=")
            if key.strip().lower() == "q":
                try:
                    q = float(value)
                except ValueError:
                    q = 0.0
        if q > 0:
            return True
    return False


# ============================================================================
# Plain text
# ============================================================================

def render_text(report: FaultReport) -> str:
    return (
        f"panic: {report.fault}\n"
        f"in: {report.file}:{report.line}\n"
        f"\n"
        f"stack at time of panic:\n"
        f"{report.stack}"
    )


# ============================================================================
# HTML
# ============================================================================

def extract_request_info(scope: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Pull a displayable summary out of an ASGI HTTP scope."""
    if not scope:
        return {}

    headers: List[Tuple[str, str]] = []
    for name, value in scope.get("headers", ()):
        key = name.decode("latin-1") if isinstance(name, bytes) else str(name)
        val = value.decode("latin-1") if isinstance(value, bytes) else str(value)
        if key.lower() in _REDACTED_HEADERS:
            val = "[redacted]"
        headers.append((key, val))

    query = scope.get("query_string", b"")
    if isinstance(query, bytes):
        query = query.decode("latin-1")

    return {
        "method": scope.get("method", "GET"),
        "path": scope.get("path", "/"),
        "query_string": query,
        "headers": sorted(headers),
    }


_env = Environment(autoescape=True, undefined=StrictUndefined)

_REPORT_TEMPLATE = _env.from_string(r"""<!DOCTYPE html>
<html lang="en">
	<head>
		<meta charset="utf-8">
		<meta name="viewport" content="width=device-width, initial-scale=1, shrink-to-fit=no">
		<meta name="description" content="Internal Exception Occurred">
		<title>panic: {{ fault }}</title>
	</head>

	<body>
		<div class="header">
			<span>
				<img src="https://www.python.org/static/img/python-logo.png" alt="">
				<h2>500 -- AN EXCEPTION OCCURRED</h2>
			</span>
		</div>

		<div class="main">
			<h1>panic: <span class="panic-text">{{ fault }}</span></h1>
			<hr>
			<p>file: <code class="inline">{{ file }}</code> (line {{ line }})</p>

			<pre class="panic"><code>{{ stack }}</code></pre>
			{% if request %}
			<h3>request</h3>
			<p><code class="inline">{{ request.method }} {{ request.path }}{% if request.query_string %}?{{ request.query_string }}{% endif %}</code></p>
			{% if request.headers %}
			<table class="vars">
				<thead><tr><th>header</th><th>value</th></tr></thead>
				<tbody>
				{% for name, value in request.headers %}
					<tr><td>{{ name }}</td><td><code>{{ value }}</code></td></tr>
				{% endfor %}
				</tbody>
			</table>
			{% endif %}
			{% endif %}
			{% if exported_vars %}
			<h3>exported variables</h3>
			<table class="vars">
				<thead><tr><th>name</th><th>value</th></tr></thead>
				<tbody>
				{% for name, value in exported_vars %}
					<tr><td>{{ name }}</td><td><code>{{ value }}</code></td></tr>
				{% endfor %}
				</tbody>
			</table>
			{% endif %}
		</div>

		<style type="text/css">
		* { font-family: "Helvetica Neue", Helvetica, Arial, sans-serif; }

		html, body {
			margin: 0;
			padding: 0;
			width: 100%;
			height: 100%;
		}

		h1, h2, h3, h4, h5, h6 {
			margin-top: 0;
			margin-bottom: 0.5rem;
			font-family: inherit;
			font-weight: 500;
			line-height: 1.1;
			color: inherit;
		}

		h1 { font-size: 2.5rem; }
		h2 { font-size: 2rem; }
		h3 { font-size: 1.75rem; margin-top: 1.5rem; }

		hr {
			box-sizing: content-box;
			height: 0;
			overflow: visible;
		}

		.header {
			background-color: #EE605E;
			color: white;
			font-size: 40px;
		}

		.header > span {
			display: flex;
			padding: 20px;
		}
		.header > span > img {
			height: 65px;
			display: inline-block;
		}
		.header > span > h2 {
			display: inline-block;
			padding: 20px 30px;
			margin: 0;
		}

		.main { padding: 20px; }
		.panic-text { color: #AAAAAA; }

		code.inline {
			background-color: #e6afaf;
			color: #383838;
			padding: 4px;
			border-radius: 3px;
		}

		pre.panic {
			background-color: #383838;
			color: white;
			padding: 15px;
			border-radius: 6px;
		}

		pre.panic > code, table.vars code {
			font-family: "Courier New", Courier, monospace;
			white-space: pre-wrap;
			word-wrap: break-word;
		}

		table.vars {
			border-collapse: collapse;
			width: 100%;
		}
		table.vars th, table.vars td {
			text-align: left;
			vertical-align: top;
			padding: 6px 10px;
			border-bottom: 1px solid #DDDDDD;
		}
		table.vars th { background-color: #F3F3F3; }
		</style>
	</body>
</html>""")


def render_html(report: FaultReport, *, request_info: Optional[Dict[str, Any]] = None) -> str:
    return _REPORT_TEMPLATE.render(
        fault=str(report.fault),
        file=report.file,
        line=report.line,
        stack=report.stack,
        exported_vars=report.exported_vars,
        request=request_info or None,
    )
