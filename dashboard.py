"""
Discord AutoReply - Web Dashboard
Local web interface for editing settings and checking the reply loop.
"""

from flask import Flask, render_template_string, request, jsonify, redirect, url_for
import threading

from config import PROVIDER_ENDPOINTS
from model_catalog import get_available_models
import runtime_config

app = Flask(__name__)

# Shared state (set by main.py)
controllers = []


PAGE = """
<!doctype html>
<title>AutoReply</title>
<h1>AutoReply</h1>
{% for c in controllers %}
<p><b>{{ c.name }}</b>: {{ 'armed' if c.armed else 'disarmed' }}{{ ', busy' if c.busy else '' }}
  {% if c.active_channel_id %}(channel {{ c.active_channel_id }}){% endif %}</p>
{% endfor %}
{% if errors %}<ul>{% for e in errors %}<li style="color:#c00">{{ e }}</li>{% endfor %}</ul>{% endif %}
<form method="post" action="{{ url_for('save_settings') }}">
  <label><input type="checkbox" name="enabled" {{ 'checked' if settings.enabled }}> Enabled</label><br>
  <label>Provider <select name="ai_provider">
    {% for pid, p in providers.items() %}
    <option value="{{ pid }}" {{ 'selected' if pid == settings.ai_provider }}>{{ p.name }}</option>
    {% endfor %}</select></label><br>
  <label>Model <select name="model">
    <option value="">(provider default)</option>
    {% for m in models %}
    <option value="{{ m.value }}" {{ 'selected' if m.value == settings.model }}>{{ m.label }}</option>
    {% endfor %}</select></label><br>
  <label>API key <input type="password" name="api_key" placeholder="{{ masked_key }}"></label><br>
  <label>Cooldown (s) <input type="number" min="0" step="any" name="cooldown" value="{{ settings.cooldown }}"></label><br>
  <label>History length <input type="number" min="0" name="history_length" value="{{ settings.history_length }}"></label><br>
  <label><input type="checkbox" name="show_typing" {{ 'checked' if settings.show_typing }}> Show typing</label><br>
  <label>Custom instructions<br>
    <textarea name="custom_instructions" rows="4" cols="80">{{ settings.custom_instructions }}</textarea></label><br>
  <button type="submit">Save</button>
</form>
"""


def mask_key(key: str) -> str:
    """Show only the last four characters of an API key."""
    if not key:
        return ""
    return "•" * max(0, len(key) - 4) + key[-4:]


def public_settings() -> dict:
    settings = runtime_config.get_all()
    settings["api_key"] = mask_key(settings.get("api_key", ""))
    return settings


def _form_to_settings(form) -> dict:
    """Convert the HTML form into typed values (validation happens later)."""
    values = {
        "enabled": form.get("enabled") == "on",
        "show_typing": form.get("show_typing") == "on",
        "ai_provider": form.get("ai_provider", ""),
        "model": form.get("model", ""),
        "custom_instructions": form.get("custom_instructions", ""),
    }
    # Blank key field keeps the stored key
    if form.get("api_key"):
        values["api_key"] = form["api_key"]
    for key, cast in (("cooldown", float), ("history_length", int)):
        raw = form.get(key, "")
        try:
            values[key] = cast(raw)
        except ValueError:
            values[key] = raw
    return values


# --- Routes ---

@app.route('/')
def dashboard():
    """Main dashboard page."""
    settings = runtime_config.get_all()
    return render_template_string(
        PAGE,
        controllers=[c.status() for c in controllers],
        settings=settings,
        providers=PROVIDER_ENDPOINTS,
        models=get_available_models(settings.get("ai_provider")),
        masked_key=mask_key(settings.get("api_key", "")),
        errors=request.args.getlist('error'),
    )


@app.route('/settings/save', methods=['POST'])
def save_settings():
    """Save the settings form."""
    clean, errors = runtime_config.validate_settings(_form_to_settings(request.form))
    if errors:
        return redirect(url_for('dashboard', error=errors))
    runtime_config.update(clean)
    return redirect(url_for('dashboard'))


@app.route('/api/settings', methods=['GET'])
def api_get_settings():
    return jsonify(public_settings())


@app.route('/api/settings', methods=['POST'])
def api_update_settings():
    """Update settings from a JSON object; only the given keys change."""
    values = request.get_json(silent=True)
    if not isinstance(values, dict):
        return jsonify({'errors': ['expected a JSON object']}), 400

    clean, errors = runtime_config.validate_settings(values)
    if errors:
        return jsonify({'errors': errors}), 400

    changed = runtime_config.update(clean)
    return jsonify({'changed': changed, 'settings': public_settings()})


@app.route('/api/models')
def api_models():
    provider = request.args.get('provider') or runtime_config.get("ai_provider")
    if provider not in PROVIDER_ENDPOINTS:
        return jsonify({'errors': [f"unknown provider '{provider}'"]}), 404
    return jsonify({'provider': provider, 'models': get_available_models(provider)})


@app.route('/api/status')
def api_status():
    """API endpoint for reply loop status."""
    return jsonify({'controllers': [c.status() for c in controllers]})


# --- Dashboard Runner ---

def start_dashboard(controllers_list=None, host='127.0.0.1', port=5000):
    """Start the dashboard in a background thread."""
    global controllers
    if controllers_list:
        controllers = controllers_list

    # Disable Flask's default logging
    import logging
    log = logging.getLogger('werkzeug')
    log.setLevel(logging.ERROR)

    thread = threading.Thread(
        target=lambda: app.run(host=host, port=port, debug=False, use_reloader=False),
        daemon=True
    )
    thread.start()
    return thread
